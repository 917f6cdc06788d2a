"""Unit tests for footnote extraction and reference substitution."""

from __future__ import annotations

from guidebook.renderer.footnotes import (
    FootnoteDefinition,
    ReferenceLinkTable,
    footnote_block_html,
    split_footnotes,
    strip_reference_markers,
    substitute_reference_tokens,
    tokenize_references,
)


def test_split_footnotes_keeps_definition_position() -> None:
    """Definitions replace their lines in place with indented continuations."""
    lines = ["Text[^1].", "", "[^1]: Note", "    more", "", "After"]
    assert split_footnotes(lines) == [
        "Text[^1].",
        "",
        FootnoteDefinition(label="1", first_line="Note", continuation="more"),
        "",
        "After",
    ]


def test_split_footnotes_spans_indented_paragraphs() -> None:
    """A blank line followed by an indented line stays in the footnote."""
    lines = ["[^a]: One", "    two", "", "    three", "Back"]
    (definition, tail) = split_footnotes(lines)
    assert isinstance(definition, FootnoteDefinition)
    assert definition.continuation == "two\n\nthree"
    assert tail == "Back"


def test_split_footnotes_ignores_fenced_code() -> None:
    """Definitions inside fenced code blocks are plain lines."""
    lines = ["```", "[^1]: not a note", "```"]
    assert split_footnotes(lines) == lines


def test_reference_table_resolves_full_collapsed_and_shortcut_links() -> None:
    """Reference links become inline links; unknown labels stay literal."""
    table = ReferenceLinkTable.from_markdown("[Docs]: https://example.com/docs\n")
    assert table.get("docs") == "https://example.com/docs", "labels are case-folded"
    assert table.resolve("See [the docs][docs], [Docs][] and [docs].") == (
        "See [the docs](https://example.com/docs), "
        "[Docs](https://example.com/docs) and [docs](https://example.com/docs)."
    )
    assert table.resolve("A [missing] label.") == "A [missing] label."


def test_reference_table_first_definition_wins() -> None:
    """Later duplicate definitions are ignored."""
    table = ReferenceLinkTable.from_markdown("[a]: first.html\n[a]: second.html\n")
    assert table.get("a") == "first.html"


def test_tokenized_references_become_anchors() -> None:
    """References are tokenised then substituted; code spans are untouched."""
    tokenized = tokenize_references("See[^1] and `[^2]`.")
    assert "[^1]" not in tokenized, "reference should be hidden from the parser"
    assert "`[^2]`" in tokenized, "code spans must stay literal"
    assert substitute_reference_tokens(tokenized) == (
        'See<sup><a href="#fn_1" id="reffn_1">1</a></sup> and `[^2]`.'
    )


def test_non_ascii_labels_survive_tokenising() -> None:
    """Labels are encoded losslessly inside the opaque token."""
    result = substitute_reference_tokens(tokenize_references("本文[^注]"))
    assert result == '本文<sup><a href="#fn_注" id="reffn_注">注</a></sup>'


def test_definition_lines_are_not_tokenised() -> None:
    """The ``[^label]:`` opener is left for the definition pass."""
    assert tokenize_references("[^1]: Note") == "[^1]: Note"


def test_footnote_block_html() -> None:
    """The footnote block carries its id, label and jump-back link."""
    assert footnote_block_html("1", "Note") == (
        '<blockquote class="footnote" id="fn_1"><sup>1</sup>. Note'
        '<a href="#reffn_1" class="footnote-backref" '
        'title="Jump back to footnote [1] in the text."> &#8617;</a></blockquote>'
    )


def test_strip_reference_markers() -> None:
    """Both tokens and literal markers are removed from heading text."""
    assert strip_reference_markers("Title[^1]") == "Title"
    assert strip_reference_markers(tokenize_references("Title[^x]")) == "Title"
