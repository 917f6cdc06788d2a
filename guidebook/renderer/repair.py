r"""Normalise raw Markdown and repair common authoring mistakes.

These passes run before any structural parsing. They never raise: input that
does not match a known mistake is passed through untouched. Fenced code
blocks are left alone by every repair.

Example
-------
>>> from guidebook.renderer.repair import prepare_source
>>> prepare_source("## Title\r\n")
'## Title\n'
"""

from __future__ import annotations

import re
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

BYTE_ORDER_MARK = "\ufeff"
FULLWIDTH_SPACE = "\u3000"

FENCE_OPEN_PATTERN = re.compile(r"^[ ]{0,3}(?P<fence>`{3,}|~{3,})")
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.-]+)?(,[^\r\n]+)$", re.MULTILINE
)
FULLWIDTH_HEADING_PATTERN = re.compile(rf"^([ \t]*#{{1,6}}){FULLWIDTH_SPACE}")
IMAGE_PATTERN = re.compile(
    r"!\[(?P<alt>(?:[^\[\]\n]|\[[^\[\]\n]*\])*)\]"
    r"\((?P<target>[^()\n]*(?:\([^()\n]*\)[^()\n]*)*)\)"
)
IMAGE_TITLE_PATTERN = re.compile(r"^\S+\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\))$")
TABLE_SEPARATOR_PATTERN = re.compile(
    r"^[ ]{0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$"
)
CELL_SPLIT_PATTERN = re.compile(r"(?<!\\)\|")
FOOTNOTE_DEFINITION_PATTERN = re.compile(r"^\[\^[^\]\s]+\]:")
HEADING_PATTERN = re.compile(r"^[ ]{0,3}#{1,6}(?:[ \t]|$)")

FOOTNOTE_INDENT = "    "


def normalize_source(text: str) -> str:
    """Unify line endings to ``\\n`` and drop every byte-order mark."""
    unified = text.replace("\r\n", "\n").replace("\r", "\n")
    return unified.replace(BYTE_ORDER_MARK, "")


def split_fenced_blocks(lines: cabc.Sequence[str]) -> list[tuple[bool, list[str]]]:
    """Group ``lines`` into alternating prose and fenced-code runs.

    Returns
    -------
    list[tuple[bool, list[str]]]
        ``(is_code, lines)`` pairs in document order. Code runs include their
        opening and closing fence lines; an unterminated fence runs to the end
        of the document as CommonMark specifies.
    """
    runs: list[tuple[bool, list[str]]] = []
    current: list[str] = []
    fence: str | None = None
    for line in lines:
        if fence is None:
            match = FENCE_OPEN_PATTERN.match(line)
            if match:
                if current:
                    runs.append((False, current))
                current = [line]
                fence = match.group("fence")
                continue
            current.append(line)
            continue
        current.append(line)
        stripped = line.strip()
        if stripped.startswith(fence) and set(stripped) == {fence[0]}:
            runs.append((True, current))
            current = []
            fence = None
    if current:
        runs.append((fence is not None, current))
    return runs


def _map_prose(
    text: str, repair: cabc.Callable[[list[str]], list[str]]
) -> str:
    """Apply ``repair`` to every prose run of ``text``, leaving code as-is."""
    output: list[str] = []
    for is_code, lines in split_fenced_blocks(text.split("\n")):
        output.extend(lines if is_code else repair(lines))
    return "\n".join(output)


def fix_fullwidth_heading_spaces(text: str) -> str:
    """Replace an ideographic space right after ``#`` markers with a space."""

    def _repair(lines: list[str]) -> list[str]:
        return [FULLWIDTH_HEADING_PATTERN.sub(r"\1 ", line) for line in lines]

    return _map_prose(text, _repair)


def _wrap_image_target(match: re.Match[str]) -> str:
    """Wrap an image target containing spaces in angle brackets."""
    target = match.group("target").strip()
    if " " not in target or target.startswith("<"):
        return match.group(0)
    if IMAGE_TITLE_PATTERN.match(target):
        return match.group(0)
    return f"![{match.group('alt')}](<{target}>)"


def fix_image_paths_with_spaces(text: str) -> str:
    """Turn ``![alt](my image.png)`` into ``![alt](<my image.png>)``."""

    def _repair(lines: list[str]) -> list[str]:
        return [IMAGE_PATTERN.sub(_wrap_image_target, line) for line in lines]

    return _map_prose(text, _repair)


def _split_cells(row: str) -> list[str]:
    """Split a pipe-table row into stripped cell strings."""
    body = row.strip()
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|") and not body.endswith("\\|"):
        body = body[:-1]
    return [cell.strip() for cell in CELL_SPLIT_PATTERN.split(body)]


def _alignment_marker(cell: str) -> str:
    """Return a normalised separator cell keeping the alignment colons."""
    left = cell.startswith(":")
    right = cell.endswith(":")
    match (left, right):
        case (True, True):
            return ":---:"
        case (True, False):
            return ":---"
        case (False, True):
            return "---:"
        case _:
            return "---"


def _is_separator_row(line: str) -> bool:
    return "|" in line and "-" in line and bool(TABLE_SEPARATOR_PATTERN.match(line))


def fix_table_separators(text: str) -> str:
    """Regenerate separator rows whose column count disagrees with the header.

    Existing alignment markers are kept for the columns they cover; columns
    the separator lacks default to left alignment and surplus separator cells
    are dropped.
    """

    def _repair(lines: list[str]) -> list[str]:
        repaired = list(lines)
        for idx in range(1, len(repaired)):
            line = repaired[idx]
            header = repaired[idx - 1]
            if not _is_separator_row(line) or "|" not in header:
                continue
            if _is_separator_row(header) or not header.strip():
                continue
            if idx >= 2 and "|" in repaired[idx - 2]:
                # header must open the table; deeper rows are data
                continue
            header_count = len(_split_cells(header))
            existing = _split_cells(line)
            if len(existing) == header_count:
                continue
            markers = [
                _alignment_marker(existing[col]) if col < len(existing) else ":---"
                for col in range(header_count)
            ]
            repaired[idx] = "| " + " | ".join(markers) + " |"
        return repaired

    return _map_prose(text, _repair)


def indent_footnote_continuations(text: str) -> str:
    """Indent unindented lines that continue a footnote definition.

    A footnote definition consumes the non-blank lines that follow it until a
    heading, a new footnote definition or a blank line. Those lines receive a
    uniform indent so they parse as part of the footnote.
    """

    def _repair(lines: list[str]) -> list[str]:
        repaired: list[str] = []
        in_footnote = False
        for line in lines:
            if FOOTNOTE_DEFINITION_PATTERN.match(line):
                in_footnote = True
                repaired.append(line)
                continue
            if not line.strip() or HEADING_PATTERN.match(line):
                in_footnote = False
                repaired.append(line)
                continue
            if in_footnote and not line[:1].isspace():
                repaired.append(f"{FOOTNOTE_INDENT}{line}")
                continue
            repaired.append(line)
        return repaired

    return _map_prose(text, _repair)


def normalize_fenced_blocks(text: str) -> str:
    """Dedent fence markers by up to three spaces and trim fence labels.

    ``rust,no_run`` style info strings are reduced to the language name so
    the highlighter recognises them.
    """
    without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

    def _strip_labels(match: re.Match[str]) -> str:
        fence, language, _extras = match.groups()
        return f"{fence}{language or ''}"

    return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


def prepare_source(text: str) -> str:
    """Run the normalisation and repair passes in their fixed order."""
    prepared = normalize_source(text)
    prepared = normalize_fenced_blocks(prepared)
    prepared = fix_fullwidth_heading_spaces(prepared)
    prepared = fix_image_paths_with_spaces(prepared)
    prepared = fix_table_separators(prepared)
    return indent_footnote_continuations(prepared)


__all__ = [
    "BYTE_ORDER_MARK",
    "fix_fullwidth_heading_spaces",
    "fix_image_paths_with_spaces",
    "fix_table_separators",
    "indent_footnote_continuations",
    "normalize_fenced_blocks",
    "normalize_source",
    "prepare_source",
    "split_fenced_blocks",
]
