"""Track which rendered-HTML regions are off limits to text rewriting.

The glossary annotator and the bare-URL autolinker both rewrite text inside
already-rendered HTML. They must leave code, links, headings, scripts and
explicitly opted-out containers alone, even when those regions nest or
interleave with ordinary elements. :class:`ElementStack` models the open
elements as a stack in which each entry carries an ``excluded`` marker, so
closing an ordinary ``</div>`` inside ``<div class="no-glossary">`` never
ends the exclusion early.

Example
-------
>>> from guidebook.html_scan import ElementStack
>>> stack = ElementStack(excluded_tags=frozenset({"code"}))
>>> stack.feed("<p>")
>>> stack.excluded
False
>>> stack.feed("<code>")
>>> stack.excluded
True
>>> stack.feed("</code>")
>>> stack.excluded
False
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

TAG_PATTERN = re.compile(
    r"<!--.*?-->|<![^>]*>|<\?[^>]*>|</?[A-Za-z][^>]*>", re.DOTALL
)
TAG_NAME_PATTERN = re.compile(r"^<\s*(/?)\s*([A-Za-z][A-Za-z0-9:-]*)")
CLASS_ATTR_PATTERN = re.compile(
    r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))""", re.IGNORECASE
)
VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)


@dc.dataclass(slots=True)
class OpenElement:
    """An element that has been opened but not yet closed."""

    name: str
    excluded: bool


class ElementStack:
    """Stack of open elements with per-entry exclusion markers."""

    def __init__(
        self,
        *,
        excluded_tags: frozenset[str],
        excluded_classes: frozenset[str] = frozenset(),
    ) -> None:
        self._excluded_tags = excluded_tags
        self._excluded_classes = excluded_classes
        self._open: list[OpenElement] = []
        self._excluded_depth = 0

    @property
    def excluded(self) -> bool:
        """Return ``True`` while any open element is marked as excluded."""
        return self._excluded_depth > 0

    def feed(self, tag: str) -> None:
        """Update the stack with one complete tag such as ``<a href="x">``."""
        match = TAG_NAME_PATTERN.match(tag)
        if match is None:
            return
        closing, raw_name = match.groups()
        name = raw_name.lower()
        if closing:
            self._close(name)
            return
        if name in VOID_ELEMENTS or tag.rstrip(">").rstrip().endswith("/"):
            return
        excluded = name in self._excluded_tags or self._has_excluded_class(tag)
        self._open.append(OpenElement(name=name, excluded=excluded))
        if excluded:
            self._excluded_depth += 1

    def _close(self, name: str) -> None:
        """Pop up to and including the innermost open ``name`` element."""
        for idx in range(len(self._open) - 1, -1, -1):
            if self._open[idx].name != name:
                continue
            for element in self._open[idx:]:
                if element.excluded:
                    self._excluded_depth -= 1
            del self._open[idx:]
            return

    def _has_excluded_class(self, tag: str) -> bool:
        if not self._excluded_classes:
            return False
        match = CLASS_ATTR_PATTERN.search(tag)
        if match is None:
            return False
        value = next(group for group in match.groups() if group is not None)
        return any(cls in self._excluded_classes for cls in value.split())


def split_markup(html: str) -> cabc.Iterator[tuple[bool, str]]:
    """Yield ``(is_tag, chunk)`` pairs covering ``html`` in order."""
    last = 0
    for match in TAG_PATTERN.finditer(html):
        if match.start() > last:
            yield False, html[last : match.start()]
        yield True, match.group(0)
        last = match.end()
    if last < len(html):
        yield False, html[last:]


def rewrite_text(
    html: str,
    stack: ElementStack,
    rewrite: cabc.Callable[[str], str],
) -> str:
    """Apply ``rewrite`` to every text chunk outside excluded elements."""
    output: list[str] = []
    for is_tag, chunk in split_markup(html):
        if is_tag:
            stack.feed(chunk)
            output.append(chunk)
        elif stack.excluded:
            output.append(chunk)
        else:
            output.append(rewrite(chunk))
    return "".join(output)


__all__ = ["ElementStack", "OpenElement", "VOID_ELEMENTS", "rewrite_text", "split_markup"]
