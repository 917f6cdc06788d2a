"""Behavioural tests for :class:`guidebook.renderer.ContentRenderer`.

Usage
-----
Run with ``pytest tests/test_renderer.py``.
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from guidebook.renderer import ContentRenderer, LinkPolicy, TocEntry


@pytest.fixture
def renderer() -> ContentRenderer:
    """Return a renderer with the default configuration."""
    return ContentRenderer()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_headings_receive_slug_ids(renderer: ContentRenderer) -> None:
    """Every heading gets an id derived from its text."""
    soup = _soup(renderer.render("# Book\n\n## Getting Started\n\n### Q&A\n"))
    assert soup.find("h1")["id"] == "book"
    assert soup.find("h2")["id"] == "getting-started"
    assert soup.find("h3")["id"] == "qa", "punctuation should be dropped"


def test_author_supplied_heading_id_is_kept(renderer: ContentRenderer) -> None:
    """``{#id}`` attributes win over generated slugs."""
    soup = _soup(renderer.render("## Setup {#custom}\n"))
    heading = soup.find("h2")
    assert heading["id"] == "custom"
    assert heading.get_text() == "Setup"


def test_toc_collects_levels_two_to_four(renderer: ContentRenderer) -> None:
    """Only level 2-4 headings are reported, in document order."""
    document = renderer.render_document(
        "# Title\n\n## One\n\n### Two\n\n#### Three\n\n##### Five\n"
    )
    assert document.toc == [
        TocEntry(level=2, text="One", slug="one"),
        TocEntry(level=3, text="Two", slug="two"),
        TocEntry(level=4, text="Three", slug="three"),
    ]


def test_extracted_toc_matches_rendered_ids(renderer: ContentRenderer) -> None:
    """TOC extraction agrees with the ids written into the HTML."""
    text = (
        "## Using `code` here[^1]\n\n"
        "## Q&A\n\n"
        "## Setup {#custom}\n\n"
        "[^1]: A note.\n"
    )
    document = renderer.render_document(text)
    assert renderer.extract_toc(text) == document.toc
    ids = [heading["id"] for heading in _soup(document.html).find_all("h2")]
    assert ids == [entry.slug for entry in document.toc]
    assert document.toc[0].text == "Using code here", "markers stay out of the TOC"
    assert document.toc[1].text == "Q&A"


def test_footnote_reference_and_block(renderer: ContentRenderer) -> None:
    """References link to the inline block, which links back."""
    soup = _soup(renderer.render("Text[^1].\n\n[^1]: The note.\n"))
    reference = soup.find("sup").find("a")
    assert reference["href"] == "#fn_1"
    assert reference["id"] == "reffn_1"
    block = soup.find("blockquote", class_="footnote")
    assert block is not None, "expected a footnote blockquote"
    assert block["id"] == "fn_1"
    assert "The note." in block.get_text()
    backref = block.find("a", class_="footnote-backref")
    assert backref["href"] == "#reffn_1"


@pytest.mark.parametrize(
    "definition",
    [
        "[^1]: Steps:\n    - one\n    - two\n",
        "[^1]: Steps:\n- one\n- two\n",
    ],
    ids=["indented", "unindented"],
)
def test_footnote_continuation_list(renderer: ContentRenderer, definition: str) -> None:
    """Lists continuing a footnote render as real lists after the block."""
    soup = _soup(renderer.render(f"Text[^1].\n\n{definition}"))
    block = soup.find("blockquote", class_="footnote")
    assert block is not None
    items = [item.get_text() for item in soup.find_all("li")]
    assert items == ["one", "two"]


def test_reference_link_inside_footnote(renderer: ContentRenderer) -> None:
    """Reference links in a footnote use the document's definitions."""
    text = "Text[^1].\n\n[^1]: See [docs][d].\n\n[d]: https://example.com\n"
    block = _soup(renderer.render(text)).find("blockquote", class_="footnote")
    assert block.find("a")["href"] == "https://example.com"


def test_reference_link_next_to_footnote_reference(renderer: ContentRenderer) -> None:
    """A reference link directly followed by a footnote marker still resolves."""
    text = "See [docs][d][^1].\n\n[d]: https://example.com\n\n[^1]: Note.\n"
    paragraph = _soup(renderer.render(text)).find("p")
    assert paragraph.find("a")["href"] == "https://example.com"
    assert paragraph.find("sup").find("a")["href"] == "#fn_1"


def test_strikethrough(renderer: ContentRenderer) -> None:
    """``~~text~~`` becomes ``<del>``."""
    assert _soup(renderer.render("~~gone~~")).find("del").get_text() == "gone"


def test_task_list_items(renderer: ContentRenderer) -> None:
    """Task markers become disabled checkboxes."""
    soup = _soup(renderer.render("- [ ] todo\n- [x] done\n- plain\n"))
    items = soup.find_all("li")
    boxes = soup.find_all("input", attrs={"type": "checkbox"})
    assert len(boxes) == 2
    assert all(box.has_attr("disabled") for box in boxes)
    assert not boxes[0].has_attr("checked")
    assert boxes[1].has_attr("checked")
    assert "task-list-item" in items[0]["class"]
    assert not items[2].has_attr("class"), "plain items are untouched"
    assert items[1].get_text().strip() == "done"


def test_mermaid_fence_is_not_highlighted(renderer: ContentRenderer) -> None:
    """Diagram fences become a ``mermaid`` div with escaped source."""
    soup = _soup(renderer.render("```mermaid\ngraph TD; A-->B\n```\n"))
    diagram = soup.find("div", class_="mermaid")
    assert diagram is not None
    assert diagram.get_text() == "graph TD; A-->B"
    assert soup.find("div", class_="codehilite") is None


def test_code_blocks_carry_language(renderer: ContentRenderer) -> None:
    """Highlighted blocks are tagged with their fence language."""
    text = "```python\nprint(1)\n```\n\n```mermaid\nA-->B\n```\n\n```rust,no_run\nfn main() {}\n```\n"
    blocks = _soup(renderer.render(text)).find_all("div", class_="codehilite")
    assert [block["data-language"] for block in blocks] == ["python", "rust"]


def test_hardbreaks() -> None:
    """Soft breaks become ``<br />`` only when enabled."""
    assert "<br" not in ContentRenderer().render("a\nb")
    assert "<br />" in ContentRenderer(hardbreaks=True).render("a\nb")


def test_root_relative_links(renderer: ContentRenderer) -> None:
    """Document links resolve against the page and point at HTML output."""
    html = renderer.render(
        "[b](../b.md) [c](/c.md) [top](#intro)", "part/a.md"
    )
    hrefs = [link["href"] for link in _soup(html).find_all("a")]
    assert hrefs == ["b.html", "c.html", "part/a.html#intro"]


def test_hop_count_links() -> None:
    """Root-relative links climb out of nested pages."""
    renderer = ContentRenderer(link_policy=LinkPolicy.HOP_COUNT)
    html = renderer.render("[c](/c.md) [d](d.md)", "x/y/a.md")
    hrefs = [link["href"] for link in _soup(html).find_all("a")]
    assert hrefs == ["../../c.html", "d.html"]


def test_leading_slash_can_be_kept() -> None:
    """Disabling the slash strip leaves root-relative hrefs alone."""
    html = ContentRenderer(strip_leading_slash=False).render("[c](/c.md)", "a.md")
    assert _soup(html).find("a")["href"] == "/c.html"


def test_broken_table_separator_is_repaired(renderer: ContentRenderer) -> None:
    """Tables with a short separator row still render every column."""
    soup = _soup(renderer.render("| a | b | c |\n|--|--|\n| 1 | 2 | 3 |\n"))
    assert [cell.get_text() for cell in soup.find_all("th")] == ["a", "b", "c"]
    assert [cell.get_text() for cell in soup.find_all("td")] == ["1", "2", "3"]


def test_byte_order_mark_does_not_break_heading(renderer: ContentRenderer) -> None:
    """A leading BOM is ignored."""
    assert _soup(renderer.render("\ufeff# Title\n")).find("h1")["id"] == "title"


def test_fullwidth_heading_space(renderer: ContentRenderer) -> None:
    """An ideographic space after ``#`` still yields a heading."""
    heading = _soup(renderer.render("#\u3000見出し\n")).find("h1")
    assert heading is not None
    assert heading["id"] == "見出し"


def test_image_path_with_spaces(renderer: ContentRenderer) -> None:
    """Image targets containing spaces are kept whole."""
    image = _soup(renderer.render("![Logo](my images/logo.png)")).find("img")
    assert image is not None
    assert image["src"].replace("%20", " ") == "my images/logo.png"


def test_bare_urls_are_linked(renderer: ContentRenderer) -> None:
    """Bare URLs become external links opening in a new tab."""
    link = _soup(renderer.render("Visit https://example.com today.")).find("a")
    assert link["href"] == "https://example.com"
    assert link["target"] == "_blank"


def test_empty_document(renderer: ContentRenderer) -> None:
    """Whitespace-only input renders to nothing."""
    assert renderer.render("  \n\n") == ""
    assert renderer.extract_toc("") == []


def test_stylesheet_targets_codehilite(renderer: ContentRenderer) -> None:
    """The Pygments stylesheet is scoped to highlighted blocks."""
    assert ".codehilite" in renderer.stylesheet
