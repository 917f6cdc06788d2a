"""Python-Markdown extension carrying the book-specific syntax.

:class:`BookExtension` bundles the processors a book page needs on top of
the stock extensions:

* diagram fences (```` ```mermaid ````) stashed as ``<div class="mermaid">``
* footnote definitions rebuilt as inline blocks
* footnote references swapped for opaque tokens
* ``~~strikethrough~~``
* ``[ ]``/``[x]`` task-list items
* heading ids and TOC collection
"""

from __future__ import annotations

import logging
import re
import typing as typ
import xml.etree.ElementTree as etree
from html import escape

from markdown import Markdown, util
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor, UnescapeTreeprocessor

from .footnotes import (
    FootnoteDefinition,
    ReferenceLinkTable,
    footnote_block_html,
    split_footnotes,
    strip_reference_markers,
    tokenize_references,
)
from .models import TocEntry
from .repair import FENCE_OPEN_PATTERN, split_fenced_blocks
from .slug import slugify

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

logger = logging.getLogger(__name__)

DIAGRAM_LANGUAGE = "mermaid"
STRIKETHROUGH_PATTERN = r"(~{2})(.+?)\1"
TASK_MARKER_PATTERN = re.compile(r"^\[(?P<mark>[ xX])\](?:[ \t]+|$)")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
TOC_LEVELS = range(2, 5)
PARAGRAPH_WRAPPER = re.compile(r"^<p>(?P<body>.*)</p>$", re.DOTALL)


def fence_language(opening: str) -> str:
    """Return the lower-cased language named by a fence opening line."""
    match = FENCE_OPEN_PATTERN.match(opening)
    info = opening[match.end() :] if match else ""
    return info.strip().split(" ", 1)[0].lower()


def _is_closed(run: list[str]) -> bool:
    """Return ``True`` when the fenced ``run`` ends with its closing fence."""
    match = FENCE_OPEN_PATTERN.match(run[0])
    if match is None or len(run) < 2:
        return False
    fence = match.group("fence")
    closing = run[-1].strip()
    return closing.startswith(fence) and set(closing) == {fence[0]}


class DiagramFencePreprocessor(Preprocessor):
    """Stash diagram fences before ``fenced_code`` can highlight them."""

    def run(self, lines: list[str]) -> list[str]:
        """Replace each diagram fence with a raw-HTML placeholder paragraph."""
        output: list[str] = []
        for is_code, run in split_fenced_blocks(lines):
            if not is_code or not fence_language(run[0]).startswith(DIAGRAM_LANGUAGE):
                output.extend(run)
                continue
            body = run[1:-1] if _is_closed(run) else run[1:]
            source = escape("\n".join(body), quote=False)
            placeholder = self.md.htmlStash.store(f'<div class="mermaid">{source}</div>')
            output.extend(["", placeholder, ""])
        return output


class FootnoteDefinitionPreprocessor(Preprocessor):
    """Rebuild ``[^label]: text`` definitions as inline footnote blocks.

    The definition's first line becomes a stashed ``blockquote`` carrying the
    jump-back link. Its continuation block, dedented, stays in the document
    right after the stashed block so lists and paragraphs in it are parsed
    like any other Markdown.
    """

    def run(self, lines: list[str]) -> list[str]:
        """Return ``lines`` with every definition replaced in place."""
        references = ReferenceLinkTable.from_markdown("\n".join(lines))
        output: list[str] = []
        for item in split_footnotes(lines):
            if not isinstance(item, FootnoteDefinition):
                output.append(item)
                continue
            logger.debug("Rebuilt footnote %r", item.label)
            output.extend(["", self._stash(item, references), ""])
            if item.continuation:
                output.extend([*item.continuation.split("\n"), ""])
        return output

    def _stash(self, definition: FootnoteDefinition, references: ReferenceLinkTable) -> str:
        first_line = tokenize_references(references.resolve(definition.first_line))
        body = Markdown().convert(first_line)
        match = PARAGRAPH_WRAPPER.match(body)
        if match:
            body = match.group("body")
        return self.md.htmlStash.store(footnote_block_html(definition.label, body))


class FootnoteReferencePreprocessor(Preprocessor):
    """Swap footnote references for tokens the parser passes through as text."""

    def run(self, lines: list[str]) -> list[str]:
        """Tokenize references across the whole document at once."""
        return tokenize_references("\n".join(lines)).split("\n")


class TaskListTreeprocessor(Treeprocessor):
    """Turn list items opening with ``[ ]`` or ``[x]`` into checkbox items."""

    def run(self, root: Element) -> None:
        """Insert a disabled checkbox into every task-list item."""
        for item in root.iter("li"):
            target = item
            if not (item.text or "").strip() and len(item) and item[0].tag == "p":
                target = item[0]
            match = TASK_MARKER_PATTERN.match(target.text or "")
            if match is None:
                continue
            checkbox = etree.Element("input", {"type": "checkbox", "disabled": "disabled"})
            if match.group("mark") in "xX":
                checkbox.set("checked", "checked")
            checkbox.tail = (target.text or "")[match.end() :]
            target.text = None
            target.insert(0, checkbox)
            classes = item.get("class", "").split()
            item.set("class", " ".join([*classes, "task-list-item"]))


class HeadingIdTreeprocessor(Treeprocessor):
    """Give every heading an id and record TOC entries for levels 2-4.

    Author-supplied ``{#id}`` attributes, already applied by ``attr_list``,
    are kept as-is.
    """

    def __init__(self, md: Markdown, extension: BookExtension) -> None:
        super().__init__(md)
        self.extension = extension
        self._unescape = UnescapeTreeprocessor(md)

    def heading_text(self, element: Element) -> str:
        """Return the plain text of ``element`` as the reader sees it."""
        text = "".join(element.itertext())
        text = util.HTML_PLACEHOLDER_RE.sub("", text)
        text = self._unescape.unescape(text).replace(util.AMP_SUBSTITUTE, "&")
        return " ".join(strip_reference_markers(text).split())

    def run(self, root: Element) -> None:
        """Assign ids in document order."""
        for element in root.iter():
            if element.tag not in HEADING_TAGS:
                continue
            text = self.heading_text(element)
            slug = element.get("id") or slugify(text)
            if slug:
                element.set("id", slug)
            level = int(element.tag[1])
            if level in TOC_LEVELS:
                self.extension.toc_entries.append(TocEntry(level=level, text=text, slug=slug))


class BookExtension(Extension):
    """Register the book processors on a ``markdown.Markdown`` instance.

    Parameters
    ----------
    tokenize_references : bool, optional
        Swap ``[^label]`` references for tokens. TOC extraction turns this
        off because it never produces final HTML.
    """

    def __init__(self, *, tokenize_references: bool = True) -> None:
        self.tokenize_references = tokenize_references
        self.toc_entries: list[TocEntry] = []

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the processors around the stock ``fenced_code`` (25)."""
        md.registerExtension(self)
        md.preprocessors.register(DiagramFencePreprocessor(md), "book_diagrams", 28)
        md.preprocessors.register(
            FootnoteDefinitionPreprocessor(md), "book_footnote_definitions", 27
        )
        if self.tokenize_references:
            md.preprocessors.register(
                FootnoteReferencePreprocessor(md), "book_footnote_references", 26
            )
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"), "book_strikethrough", 65
        )
        md.treeprocessors.register(TaskListTreeprocessor(md), "book_tasklist", 7)
        md.treeprocessors.register(HeadingIdTreeprocessor(md, self), "book_heading_ids", 6)

    def reset(self) -> None:
        """Forget the TOC entries of the previous document."""
        self.toc_entries = []


__all__ = [
    "BookExtension",
    "DiagramFencePreprocessor",
    "FootnoteDefinitionPreprocessor",
    "FootnoteReferencePreprocessor",
    "HeadingIdTreeprocessor",
    "TaskListTreeprocessor",
    "fence_language",
]
