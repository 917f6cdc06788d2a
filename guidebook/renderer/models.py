"""Data structures returned by the content renderer."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(frozen=True, slots=True)
class TocEntry:
    """Heading collected for a page's table of contents.

    Attributes
    ----------
    level : int
        Heading level between 2 and 4; the level-1 page title is excluded.
    text : str
        Plain heading text with inline markup and footnote markers removed.
    slug : str
        Anchor id carried by the heading in the rendered HTML.
    """

    level: int
    text: str
    slug: str


@dc.dataclass(slots=True)
class RenderedDocument:
    """Rendered HTML together with the TOC entries it exposes."""

    html: str
    toc: list[TocEntry] = dc.field(default_factory=list)


__all__ = ["RenderedDocument", "TocEntry"]
