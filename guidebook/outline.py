r"""Parse a book outline (``SUMMARY.md``) into a navigation tree.

Nesting comes from the CommonMark list structure reported by markdown-it-py,
never from counting indentation columns, so two-space, four-space, tab and
mixed indentation describing the same hierarchy produce the same tree.

Example
-------
>>> from guidebook.outline import parse_outline
>>> outline = parse_outline("# Summary\n\n* [Intro](intro.md)\n  * [Setup](./setup.md)\n")
>>> outline.title
'Summary'
>>> [link.path for link in outline.iter_links()]
['intro.md', 'setup.md']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from urllib.parse import unquote

from markdown_it import MarkdownIt

from guidebook.renderer.repair import normalize_source

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from markdown_it.token import Token

logger = logging.getLogger(__name__)

OUTLINE_FILENAME = "SUMMARY.md"
LANGUAGES_FILENAME = "LANGS.md"
LIST_OPEN_TOKENS = ("bullet_list_open", "ordered_list_open")
LIST_CLOSE_TOKENS = ("bullet_list_close", "ordered_list_close")
PART_TITLE_LEVELS = ("h2", "h3")


class OutlineNotFoundError(FileNotFoundError):
    """Raised when a book directory has no outline document."""


@dc.dataclass(frozen=True, slots=True)
class OutlineLink:
    """A chapter entry; ``path`` is ``None`` for a grouping label."""

    title: str
    path: str | None = None
    children: tuple[OutlineNode, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class OutlineSeparator:
    """A thematic break between outline sections."""


@dc.dataclass(frozen=True, slots=True)
class OutlinePartTitle:
    """An unlinked level-2 or level-3 heading that names a part of the book."""

    text: str


OutlineNode = OutlineLink | OutlineSeparator | OutlinePartTitle


@dc.dataclass(frozen=True, slots=True)
class Outline:
    """The navigation tree of a book.

    Attributes
    ----------
    title : str or None
        Text of the first level-1 heading.
    items : tuple[OutlineNode, ...]
        Top-level nodes in declaration order.
    """

    title: str | None = None
    items: tuple[OutlineNode, ...] = ()

    def iter_links(self) -> cabc.Iterator[OutlineLink]:
        """Yield every :class:`OutlineLink` depth-first in reading order."""
        stack: list[OutlineNode] = list(reversed(self.items))
        while stack:
            node = stack.pop()
            if isinstance(node, OutlineLink):
                yield node
                stack.extend(reversed(node.children))


@dc.dataclass(frozen=True, slots=True)
class Language:
    """A language edition listed in ``LANGS.md``."""

    code: str
    title: str


@dc.dataclass(slots=True)
class _PendingItem:
    """A list item whose closing token has not been seen yet."""

    title_parts: list[str] = dc.field(default_factory=list)
    link_title: str | None = None
    path: str | None = None
    has_link: bool = False
    seen_inline: bool = False
    children: tuple[OutlineNode, ...] = ()

    def build(self) -> OutlineLink | None:
        if self.has_link:
            return OutlineLink(
                title=self.link_title or "", path=self.path, children=self.children
            )
        title = " ".join("".join(self.title_parts).split())
        if not title:
            return None
        return OutlineLink(title=title, path=None, children=self.children)


@dc.dataclass(slots=True)
class _ListFrame:
    """An open list together with its finished items and the open item."""

    items: list[OutlineNode] = dc.field(default_factory=list)
    pending: _PendingItem | None = None


def _normalize_path(href: str | None) -> str | None:
    """Return the outline path for a link target, or ``None`` for no page."""
    if not href or href == "#":
        return None
    path = unquote(href)
    while path.startswith("./"):
        path = path[2:]
    return path or None


def _inline_text(token: Token) -> str:
    match token.type:
        case "text" | "code_inline":
            return token.content
        case "softbreak" | "hardbreak":
            return " "
        case "image":
            return token.content
        case _:
            return ""


@dc.dataclass(slots=True)
class _InlineSummary:
    """Plain text and the first link found in one inline token."""

    text: str
    link_title: str | None
    href: str | None
    has_link: bool


def _summarize_inline(token: Token) -> _InlineSummary:
    text_parts: list[str] = []
    link_parts: list[str] = []
    href: str | None = None
    has_link = False
    in_first_link = False
    for child in token.children or []:
        if child.type == "link_open":
            if not has_link:
                has_link = True
                in_first_link = True
                href = str(child.attrGet("href") or "")
            continue
        if child.type == "link_close":
            in_first_link = False
            continue
        piece = _inline_text(child)
        text_parts.append(piece)
        if in_first_link:
            link_parts.append(piece)
    link_title = " ".join("".join(link_parts).split()) if has_link else None
    return _InlineSummary(
        text="".join(text_parts), link_title=link_title, href=href, has_link=has_link
    )


class _OutlineBuilder:
    """Fold a markdown-it token stream into outline nodes.

    An explicit stack of :class:`_ListFrame` objects tracks the open lists.
    A nested list is attached as the children of the item that owns it when
    the nested list closes.
    """

    def __init__(self) -> None:
        self.title: str | None = None
        self.items: list[OutlineNode] = []
        self.frames: list[_ListFrame] = []
        self._heading: str | None = None

    def _emit(self, node: OutlineNode) -> None:
        if self.frames:
            self.frames[-1].items.append(node)
        else:
            self.items.append(node)

    def feed(self, token: Token) -> None:
        match token.type:
            case kind if kind in LIST_OPEN_TOKENS:
                self.frames.append(_ListFrame())
            case kind if kind in LIST_CLOSE_TOKENS:
                self._close_list()
            case "list_item_open":
                if self.frames:
                    self.frames[-1].pending = _PendingItem()
            case "list_item_close":
                self._close_item()
            case "heading_open":
                self._heading = token.tag
            case "heading_close":
                self._heading = None
            case "hr":
                self._emit(OutlineSeparator())
            case "inline":
                self._inline(token)
            case _:
                pass

    def _close_list(self) -> None:
        frame = self.frames.pop()
        if not self.frames:
            self.items.extend(frame.items)
            return
        owner = self.frames[-1].pending
        if owner is None:
            self.frames[-1].items.extend(frame.items)
            return
        owner.children = (*owner.children, *frame.items)

    def _close_item(self) -> None:
        if not self.frames:
            return
        frame = self.frames[-1]
        pending, frame.pending = frame.pending, None
        if pending is None:
            return
        node = pending.build()
        if node is None:
            logger.debug("Skipping outline item without a title or link")
            return
        frame.items.append(node)

    def _inline(self, token: Token) -> None:
        summary = _summarize_inline(token)
        if self._heading is not None and not self.frames:
            self._heading_inline(summary)
            return
        if not self.frames:
            return
        pending = self.frames[-1].pending
        if pending is None or pending.seen_inline or pending.children:
            return
        pending.seen_inline = True
        pending.title_parts.append(summary.text)
        if summary.has_link:
            pending.has_link = True
            pending.link_title = summary.link_title
            pending.path = _normalize_path(summary.href)

    def _heading_inline(self, summary: _InlineSummary) -> None:
        text = " ".join(summary.text.split())
        if summary.has_link:
            self.items.append(
                OutlineLink(
                    title=summary.link_title or text,
                    path=_normalize_path(summary.href),
                )
            )
        elif self._heading == "h1":
            if self.title is None:
                self.title = text
        elif self._heading in PART_TITLE_LEVELS and text:
            self.items.append(OutlinePartTitle(text=text))

    def build(self) -> Outline:
        while self.frames:
            self._close_list()
        return Outline(title=self.title, items=tuple(self.items))


def _parser() -> MarkdownIt:
    return MarkdownIt("commonmark")


def parse_outline(text: str) -> Outline:
    """Parse outline Markdown into an :class:`Outline`.

    Parameters
    ----------
    text : str
        Contents of the outline document.

    Returns
    -------
    Outline
        The navigation tree. Malformed entries are skipped; parsing never
        fails on content.
    """
    builder = _OutlineBuilder()
    for token in _parser().parse(normalize_source(text)):
        builder.feed(token)
    return builder.build()


def load_outline(book_dir: Path) -> Outline:
    """Read and parse ``SUMMARY.md`` from ``book_dir``.

    Raises
    ------
    OutlineNotFoundError
        If the book has no outline document.
    """
    path = book_dir / OUTLINE_FILENAME
    if not path.is_file():
        msg = f"Outline '{path}' not found."
        raise OutlineNotFoundError(msg)
    return parse_outline(path.read_text(encoding="utf-8"))


def parse_languages(text: str) -> list[Language]:
    """Return the language editions linked from the top level of ``text``.

    Examples
    --------
    >>> parse_languages("* [English](en/)\\n* [日本語](ja/)\\n")
    [Language(code='en', title='English'), Language(code='ja', title='日本語')]
    """
    languages: list[Language] = []
    for node in parse_outline(text).items:
        if isinstance(node, OutlineLink) and node.path:
            languages.append(Language(code=node.path.rstrip("/"), title=node.title))
    return languages


def load_languages(book_dir: Path) -> list[Language]:
    """Read ``LANGS.md`` from ``book_dir``; an absent file means one language."""
    path = book_dir / LANGUAGES_FILENAME
    if not path.is_file():
        return []
    return parse_languages(path.read_text(encoding="utf-8"))


__all__ = [
    "LANGUAGES_FILENAME",
    "OUTLINE_FILENAME",
    "Language",
    "Outline",
    "OutlineLink",
    "OutlineNode",
    "OutlineNotFoundError",
    "OutlinePartTitle",
    "OutlineSeparator",
    "load_languages",
    "load_outline",
    "parse_languages",
    "parse_outline",
]
