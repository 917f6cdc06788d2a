r"""Glossary loading and HTML-context-aware term annotation.

Terms come from ``GLOSSARY.md``: each ``## term`` heading starts an entry
whose following lines form the definition. :func:`annotate` wraps every
whole-word occurrence of a term in rendered HTML with a tooltip span while
leaving code, links, headings, scripts, styles and ``no-glossary`` regions
untouched.

Example
-------
>>> from guidebook.glossary import annotate, parse_glossary
>>> glossary = parse_glossary("## API\nInterface\n")
>>> annotate("<p>An API call.</p>", glossary)
'<p>An <span class="glossary-term" data-definition="Interface">API</span> call.</p>'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from html import escape

from guidebook.html_scan import ElementStack, rewrite_text
from guidebook.renderer.repair import normalize_source

if typ.TYPE_CHECKING:
    from pathlib import Path

GLOSSARY_FILENAME = "GLOSSARY.md"
TERM_CLASS = "glossary-term"
EXCLUDED_TAGS = frozenset(
    {"code", "pre", "a", "h1", "h2", "h3", "h4", "h5", "h6", "script", "style"}
)
EXCLUDED_CLASSES = frozenset({"no-glossary", TERM_CLASS})
CHARACTER_REFERENCE_PATTERN = re.compile(r"&(?:#[0-9]+|#[xX][0-9A-Fa-f]+|[A-Za-z][A-Za-z0-9]*);")


@dc.dataclass(frozen=True, slots=True)
class GlossaryTerm:
    """A glossary entry."""

    term: str
    definition: str


@dc.dataclass(frozen=True, slots=True)
class Glossary:
    """Glossary entries, exposed longest term first.

    Longer terms are applied first so ``REST API`` is annotated before the
    shorter ``API`` can claim part of it.
    """

    entries: tuple[GlossaryTerm, ...] = ()

    @property
    def terms(self) -> list[GlossaryTerm]:
        """Return the entries ordered by decreasing term length."""
        return sorted(self.entries, key=lambda entry: len(entry.term), reverse=True)

    def get(self, term: str) -> str | None:
        """Return the definition of ``term`` or ``None``."""
        for entry in self.entries:
            if entry.term == term:
                return entry.definition
        return None

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def parse_glossary(text: str) -> Glossary:
    """Parse glossary Markdown into a :class:`Glossary`.

    The ``# `` title line is skipped, definition lines are joined with single
    spaces and terms without a definition are dropped. A term defined twice
    keeps its last definition.
    """
    definitions: dict[str, str] = {}
    term: str | None = None
    lines: list[str] = []

    def _flush() -> None:
        if term is None:
            return
        definition = " ".join(lines)
        if definition:
            definitions.pop(term, None)
            definitions[term] = definition

    for raw in normalize_source(text).split("\n"):
        stripped = raw.strip()
        if stripped.startswith("# "):
            continue
        if stripped.startswith("## "):
            _flush()
            term = stripped[3:].strip()
            lines = []
            continue
        if term is not None and stripped:
            lines.append(stripped)
    _flush()
    return Glossary(
        entries=tuple(
            GlossaryTerm(term=key, definition=value) for key, value in definitions.items()
        )
    )


def load_glossary(book_dir: Path) -> Glossary:
    """Read ``GLOSSARY.md`` from ``book_dir``; a missing file means no terms."""
    path = book_dir / GLOSSARY_FILENAME
    if not path.is_file():
        return Glossary()
    return parse_glossary(path.read_text(encoding="utf-8"))


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char > "\x7f"


def _annotate_text(text: str, needle: str, replacement: str) -> str:
    """Wrap whole-word occurrences of ``needle`` in one HTML text run."""
    output: list[str] = []
    idx = 0
    previous = ""
    while idx < len(text):
        if text.startswith(needle, idx):
            after = text[idx + len(needle) : idx + len(needle) + 1]
            if not _is_word_char(previous or " ") and not _is_word_char(after or " "):
                output.append(replacement)
                idx += len(needle)
                previous = needle[-1]
                continue
        reference = CHARACTER_REFERENCE_PATTERN.match(text, idx)
        if reference:
            output.append(reference.group(0))
            idx = reference.end()
            previous = ";"
            continue
        previous = text[idx]
        output.append(previous)
        idx += 1
    return "".join(output)


def annotate(html: str, glossary: Glossary) -> str:
    """Wrap glossary terms in ``html`` with definition spans.

    Parameters
    ----------
    html : str
        Rendered page body.
    glossary : Glossary
        Terms to annotate.

    Returns
    -------
    str
        ``html`` with each whole-word term occurrence outside excluded
        regions wrapped in ``<span class="glossary-term">``. Nothing else
        changes.
    """
    for entry in glossary.terms:
        if not entry.term:
            continue
        needle = escape(entry.term, quote=False)
        definition = escape(entry.definition, quote=True)
        replacement = (
            f'<span class="{TERM_CLASS}" data-definition="{definition}">{needle}</span>'
        )
        stack = ElementStack(
            excluded_tags=EXCLUDED_TAGS, excluded_classes=EXCLUDED_CLASSES
        )
        html = rewrite_text(
            html,
            stack,
            lambda text, needle=needle, replacement=replacement: _annotate_text(
                text, needle, replacement
            ),
        )
    return html


__all__ = [
    "GLOSSARY_FILENAME",
    "Glossary",
    "GlossaryTerm",
    "annotate",
    "load_glossary",
    "parse_glossary",
]
