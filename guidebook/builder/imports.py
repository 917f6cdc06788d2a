"""Expand ``<!-- @import("path.md") -->`` directives in Markdown sources."""

from __future__ import annotations

import logging
import re
import typing as typ

from guidebook.renderer.repair import BYTE_ORDER_MARK

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(r'<!--\s*@import\s*\(\s*"(?P<path>[^"]+)"\s*\)\s*-->')


def _expand(text: str, base_dir: Path, visited: frozenset[Path]) -> str:
    def _replace(match: re.Match[str]) -> str:
        target = (base_dir / match.group("path")).resolve()
        if target in visited:
            logger.warning("Skipping circular @import of %s", target)
            return ""
        if not target.is_file():
            logger.warning("@import file not found: %s", target)
            return match.group(0)
        try:
            content = target.read_text(encoding="utf-8").replace(BYTE_ORDER_MARK, "")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read @import file %s: %s", target, exc)
            return match.group(0)
        return _expand(content, target.parent, visited | {target})

    return IMPORT_PATTERN.sub(_replace, text)


def expand_imports(text: str, file_path: Path) -> str:
    """Replace import directives in ``text`` with the referenced files.

    Paths are relative to the importing file. Imports expand recursively; a
    file already on the current import chain (including ``file_path``
    itself) is skipped so cycles terminate.

    Parameters
    ----------
    text : str
        Markdown source of ``file_path``.
    file_path : Path
        Location of the document holding the directives.

    Returns
    -------
    str
        The expanded Markdown. Directives naming missing files are kept.
    """
    return _expand(text, file_path.parent, frozenset({file_path.resolve()}))


__all__ = ["IMPORT_PATTERN", "expand_imports"]
