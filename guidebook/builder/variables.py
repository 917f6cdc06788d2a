"""Render ``{{ book.name }}`` style template expressions in Markdown."""

from __future__ import annotations

import logging
import re
import typing as typ

from jinja2 import Environment, TemplateError

from guidebook.renderer.footnotes import CODE_SPAN_PATTERN
from guidebook.renderer.repair import split_fenced_blocks

logger = logging.getLogger(__name__)

TEMPLATE_MARKERS = ("{{", "{%", "{#")
PLACEHOLDER_MARK = "\x1a"
PLACEHOLDER_PATTERN = re.compile(rf"{PLACEHOLDER_MARK}CODE(?P<index>[0-9]+){PLACEHOLDER_MARK}")


def _segments(text: str) -> list[tuple[bool, str]]:
    """Split ``text`` into ``(is_code, chunk)`` pairs covering it in order."""
    segments: list[tuple[bool, str]] = []
    for is_code, lines in split_fenced_blocks(text.split("\n")):
        chunk = "\n".join(lines)
        if segments:
            segments.append((False, "\n"))
        if is_code:
            segments.append((True, chunk))
            continue
        last = 0
        for match in CODE_SPAN_PATTERN.finditer(chunk):
            segments.append((False, chunk[last : match.start()]))
            segments.append((True, match.group(0)))
            last = match.end()
        segments.append((False, chunk[last:]))
    return segments


def _protect(text: str) -> tuple[str, list[str]]:
    """Swap code segments for placeholders Jinja passes through as text."""
    protected: list[str] = []
    pieces: list[str] = []
    for is_code, chunk in _segments(text):
        if is_code:
            pieces.append(f"{PLACEHOLDER_MARK}CODE{len(protected)}{PLACEHOLDER_MARK}")
            protected.append(chunk)
        else:
            pieces.append(chunk)
    return "".join(pieces), protected


def expand_variables(text: str, variables: typ.Mapping[str, typ.Any]) -> str:
    """Render template expressions outside fenced blocks and code spans.

    Code is swapped for placeholders and the document is rendered as one
    template, so a ``{% if %}`` block may wrap code spans and fenced blocks.
    Variables are exposed both under ``book`` and at the top level, so
    ``{{ book.version }}`` and ``{{ version }}`` resolve alike.

    Examples
    --------
    >>> expand_variables("v{{ book.version }} `{{ book.version }}`", {"version": 2})
    'v2 `{{ book.version }}`'
    """
    if not any(marker in text for marker in TEMPLATE_MARKERS):
        return text
    protected_text, protected = _protect(text)
    if not any(marker in protected_text for marker in TEMPLATE_MARKERS):
        return text
    env = Environment(autoescape=False, keep_trailing_newline=True)  # noqa: S701 - renders Markdown, not HTML
    context = {**variables, "book": dict(variables)}
    try:
        rendered = env.from_string(protected_text).render(**context)
    except TemplateError as exc:
        logger.warning("Template error, leaving content unexpanded: %s", exc)
        return text
    return PLACEHOLDER_PATTERN.sub(
        lambda match: protected[int(match.group("index"))], rendered
    )


__all__ = ["expand_variables"]
