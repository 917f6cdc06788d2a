"""Unit tests for the pre-parse Markdown repair passes."""

from __future__ import annotations

from guidebook.renderer.repair import (
    fix_fullwidth_heading_spaces,
    fix_image_paths_with_spaces,
    fix_table_separators,
    indent_footnote_continuations,
    normalize_fenced_blocks,
    normalize_source,
    prepare_source,
)


def test_normalize_source_unifies_line_endings_and_strips_boms() -> None:
    """CRLF and CR become LF and byte-order marks vanish anywhere."""
    assert normalize_source("\ufeffa\r\nb\rc\ufeff") == "a\nb\nc"


def test_fullwidth_space_after_heading_marker() -> None:
    """An ideographic space after ``#`` is replaced with an ASCII space."""
    assert fix_fullwidth_heading_spaces("##\u3000見出し") == "## 見出し"


def test_fullwidth_space_inside_code_fence_is_kept() -> None:
    """Fenced code blocks are never repaired."""
    text = "```\n#\u3000comment\n```"
    assert fix_fullwidth_heading_spaces(text) == text


def test_image_target_with_spaces_is_wrapped() -> None:
    """Image paths containing spaces gain angle brackets."""
    assert fix_image_paths_with_spaces("![Logo](my images/logo.png)") == (
        "![Logo](<my images/logo.png>)"
    )


def test_image_target_with_title_is_left_alone() -> None:
    """A space separating the path from a title is not part of the path."""
    text = '![Logo](logo.png "The logo")'
    assert fix_image_paths_with_spaces(text) == text


def test_table_separator_gains_missing_columns() -> None:
    """Short separators are regenerated with alignment preserved."""
    text = "| a | b | c |\n|:-:|--:|\n| 1 | 2 | 3 |"
    repaired = fix_table_separators(text).split("\n")
    assert repaired[1] == "| :---: | ---: | :--- |"
    assert repaired[2] == "| 1 | 2 | 3 |", "data rows must not change"


def test_table_separator_drops_surplus_columns() -> None:
    """Extra separator cells beyond the header are removed."""
    text = "| a | b |\n|---|:--|---|"
    assert fix_table_separators(text).split("\n")[1] == "| --- | :--- |"


def test_matching_table_separator_is_untouched() -> None:
    """Well-formed tables pass through unchanged."""
    text = "| a | b |\n|---|---|\n| 1 | 2 |"
    assert fix_table_separators(text) == text


def test_footnote_continuation_lines_are_indented() -> None:
    """Lines following a definition join the footnote until a blank line."""
    text = "[^1]: First line\nsecond line\n\nAfter"
    assert indent_footnote_continuations(text) == (
        "[^1]: First line\n    second line\n\nAfter"
    )


def test_footnote_continuation_stops_at_heading() -> None:
    """A heading ends the footnote continuation."""
    text = "[^1]: Note\n## Next"
    assert indent_footnote_continuations(text) == text


def test_fenced_blocks_are_dedented_and_labels_trimmed() -> None:
    """Fence markers lose up to three spaces and extra info-string labels."""
    text = "  ```rust,no_run\n  fn main() {}\n  ```"
    assert normalize_fenced_blocks(text) == "```rust\n  fn main() {}\n```"


def test_prepare_source_runs_every_pass() -> None:
    """The combined pass normalises and repairs in one go."""
    text = "\ufeff#\u3000Title\r\n\r\n![a](b c.png)\r\n"
    assert prepare_source(text) == "# Title\n\n![a](<b c.png>)\n"
