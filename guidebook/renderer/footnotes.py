r"""Footnote extraction and two-phase footnote reference substitution.

Footnote syntax collides with reference-link syntax (``[^1]`` next to
``[text][label]``), so it never reaches the Markdown parser verbatim.
Definitions are pulled out before parsing and rebuilt as HTML; references are
swapped for opaque tokens and only turned into anchors once the whole
document has been converted.

Example
-------
>>> from guidebook.renderer.footnotes import (
...     substitute_reference_tokens,
...     tokenize_references,
... )
>>> tokenized = tokenize_references("See[^1].")
>>> substitute_reference_tokens(tokenized)
'See<sup><a href="#fn_1" id="reffn_1">1</a></sup>.'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import textwrap
import typing as typ
from html import escape

from .repair import HEADING_PATTERN, split_fenced_blocks

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

FOOTNOTE_DEFINITION_PATTERN = re.compile(
    r"^\[\^(?P<label>[^\]\s]+)\]:[ \t]*(?P<body>.*)$"
)
FOOTNOTE_REFERENCE_PATTERN = re.compile(r"\[\^(?P<label>[^\]\s]+)\](?!:)")
REFERENCE_DEFINITION_PATTERN = re.compile(
    r"^[ ]{0,3}\[(?P<label>[^\]^][^\]]*)\]:[ \t]*<?(?P<url>[^\s>]+)>?"
    r"(?:[ \t]+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?[ \t]*$",
    re.MULTILINE,
)
FULL_REFERENCE_PATTERN = re.compile(
    r"(?<![!\]\\])\[(?P<text>[^\]\[]+)\]\[(?P<label>[^\]\[]*)\]"
)
SHORTCUT_REFERENCE_PATTERN = re.compile(
    r"(?<![!\]\\])\[(?P<label>[^\]\[^][^\]\[]*)\](?![\[(:])"
)
CODE_SPAN_PATTERN = re.compile(r"(`+)(?:(?!\1).)+?\1")

TOKEN_MARK = "\x1a"
TOKEN_PREFIX = f"{TOKEN_MARK}FNREF"
TOKEN_PATTERN = re.compile(rf"{TOKEN_PREFIX}(?P<payload>[0-9a-f]+){TOKEN_MARK}")


@dc.dataclass(slots=True)
class FootnoteDefinition:
    """A footnote definition scoped to a single document.

    Attributes
    ----------
    label : str
        Footnote label as written between ``[^`` and ``]``.
    first_line : str
        Markdown on the definition line itself.
    continuation : str or None
        Dedented Markdown block that followed the definition, if any.
    """

    label: str
    first_line: str
    continuation: str | None = None


def _normalize_label(label: str) -> str:
    return " ".join(label.split()).lower()


@dc.dataclass(slots=True)
class ReferenceLinkTable:
    """Map lower-cased reference labels to URLs for one document."""

    links: dict[str, str] = dc.field(default_factory=dict)

    @classmethod
    def from_markdown(cls, text: str) -> ReferenceLinkTable:
        """Collect every ``[label]: url`` definition in ``text``.

        The first definition of a label wins, matching CommonMark.
        """
        links: dict[str, str] = {}
        for match in REFERENCE_DEFINITION_PATTERN.finditer(text):
            links.setdefault(_normalize_label(match.group("label")), match.group("url"))
        return cls(links=links)

    def get(self, label: str) -> str | None:
        """Return the URL registered for ``label`` or ``None``."""
        return self.links.get(_normalize_label(label))

    def resolve(self, text: str) -> str:
        """Rewrite full and shortcut reference links to inline links.

        Labels missing from the table are left as written.
        """

        def _full(match: re.Match[str]) -> str:
            label = match.group("label") or match.group("text")
            url = self.get(label)
            if url is None:
                logger.debug("Unresolved reference link label %r", label)
                return match.group(0)
            return f"[{match.group('text')}]({url})"

        def _shortcut(match: re.Match[str]) -> str:
            label = match.group("label")
            url = self.get(label)
            if url is None:
                logger.debug("Unresolved shortcut reference %r", label)
                return match.group(0)
            return f"[{label}]({url})"

        resolved = FULL_REFERENCE_PATTERN.sub(_full, text)
        return SHORTCUT_REFERENCE_PATTERN.sub(_shortcut, resolved)


def _continuation_length(lines: cabc.Sequence[str], start: int) -> int:
    """Count the lines from ``start`` that continue a footnote definition.

    Indented lines continue the footnote. A blank line continues it only when
    an indented line follows, so later paragraphs stay in the footnote as long
    as the author indents them.
    """
    count = 0
    idx = start
    while idx < len(lines):
        line = lines[idx]
        if not line.strip():
            nxt = idx + 1
            while nxt < len(lines) and not lines[nxt].strip():
                nxt += 1
            if nxt < len(lines) and lines[nxt][:1].isspace():
                idx = nxt
                count = nxt - start
                continue
            break
        if not line[:1].isspace() or HEADING_PATTERN.match(line):
            break
        if FOOTNOTE_DEFINITION_PATTERN.match(line.lstrip()):
            break
        idx += 1
        count = idx - start
    return count


def split_footnotes(
    lines: cabc.Sequence[str],
) -> list[str | FootnoteDefinition]:
    """Split document lines into plain lines and footnote definitions.

    Definitions stay at their original position in the returned sequence.
    Fenced code blocks are never inspected.
    """
    output: list[str | FootnoteDefinition] = []
    for is_code, run in split_fenced_blocks(lines):
        if is_code:
            output.extend(run)
            continue
        idx = 0
        while idx < len(run):
            match = FOOTNOTE_DEFINITION_PATTERN.match(run[idx])
            if not match:
                output.append(run[idx])
                idx += 1
                continue
            length = _continuation_length(run, idx + 1)
            block = "\n".join(run[idx + 1 : idx + 1 + length])
            continuation = textwrap.dedent(block).strip("\n") or None
            output.append(
                FootnoteDefinition(
                    label=match.group("label"),
                    first_line=match.group("body").strip(),
                    continuation=continuation,
                )
            )
            idx += 1 + length
    return output


def footnote_block_html(label: str, body_html: str) -> str:
    """Return the inline footnote block with its jump-back link."""
    safe = escape(label, quote=True)
    return (
        f'<blockquote class="footnote" id="fn_{safe}"><sup>{safe}</sup>. '
        f"{body_html}"
        f'<a href="#reffn_{safe}" class="footnote-backref" '
        f'title="Jump back to footnote [{safe}] in the text."> &#8617;</a>'
        "</blockquote>"
    )


def _encode_label(label: str) -> str:
    return label.encode("utf-8").hex()


def _tokenize_prose(text: str) -> str:
    """Replace footnote references outside inline code spans."""
    pieces: list[str] = []
    last = 0
    for match in CODE_SPAN_PATTERN.finditer(text):
        pieces.append(_replace_references(text[last : match.start()]))
        pieces.append(match.group(0))
        last = match.end()
    pieces.append(_replace_references(text[last:]))
    return "".join(pieces)


def _replace_references(text: str) -> str:
    return FOOTNOTE_REFERENCE_PATTERN.sub(
        lambda match: f"{TOKEN_PREFIX}{_encode_label(match.group('label'))}{TOKEN_MARK}",
        text,
    )


def tokenize_references(text: str) -> str:
    """Swap ``[^label]`` references for opaque tokens.

    Definitions (``[^label]:`` at line start), fenced code and inline code
    spans are left untouched.
    """
    output: list[str] = []
    for is_code, run in split_fenced_blocks(text.split("\n")):
        if is_code:
            output.extend(run)
            continue
        for line in run:
            if FOOTNOTE_DEFINITION_PATTERN.match(line):
                output.append(line)
            else:
                output.append(_tokenize_prose(line))
    return "\n".join(output)


def reference_anchor_html(label: str) -> str:
    """Return the superscript anchor that points at a footnote block."""
    safe = escape(label, quote=True)
    return f'<sup><a href="#fn_{safe}" id="reffn_{safe}">{safe}</a></sup>'


def substitute_reference_tokens(html: str) -> str:
    """Turn every reference token in ``html`` into its final anchor markup."""

    def _replace(match: re.Match[str]) -> str:
        payload = match.group("payload")
        try:
            label = bytes.fromhex(payload).decode("utf-8")
        except ValueError:
            return ""
        return reference_anchor_html(label)

    return TOKEN_PATTERN.sub(_replace, html)


def strip_reference_markers(text: str) -> str:
    """Remove reference tokens and literal ``[^label]`` markers from text."""
    return FOOTNOTE_REFERENCE_PATTERN.sub("", TOKEN_PATTERN.sub("", text))


__all__ = [
    "FootnoteDefinition",
    "ReferenceLinkTable",
    "footnote_block_html",
    "reference_anchor_html",
    "split_footnotes",
    "strip_reference_markers",
    "substitute_reference_tokens",
    "tokenize_references",
]
