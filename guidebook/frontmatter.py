r"""Split YAML front matter from the start of a Markdown document.

Example
-------
>>> from guidebook.frontmatter import parse_front_matter
>>> parsed = parse_front_matter("---\ntitle: Setup\n---\n# Body\n")
>>> parsed.front_matter.title
'Setup'
>>> parsed.content
'# Body\n'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(
    r"\A[ \t\r\n]*---[ \t]*\r?\n(?P<yaml>(?:.*?\r?\n)??)---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)


@dc.dataclass(slots=True)
class FrontMatter:
    """Metadata declared at the top of a document.

    Attributes
    ----------
    title : str or None
        Page title overriding the outline link text.
    description : str or None
        Page description for the ``<meta name="description">`` tag.
    extra : dict[str, Any]
        Any other keys, kept verbatim.
    """

    title: str | None = None
    description: str | None = None
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(slots=True)
class ParsedContent:
    """A document split into its front matter and Markdown body."""

    front_matter: FrontMatter | None
    content: str


def _optional_text(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_front_matter(text: str) -> ParsedContent:
    """Return the front matter of ``text`` and the remaining content.

    Documents without a ``---`` block at the very start, with an unclosed
    block, or whose block is not a YAML mapping are returned unchanged with
    ``front_matter`` set to ``None``.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if match is None:
        return ParsedContent(front_matter=None, content=text)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(match.group("yaml") or "") or {}
    except YAMLError as exc:
        logger.warning("Ignoring invalid front matter: %s", exc)
        return ParsedContent(front_matter=None, content=text)
    if not isinstance(loaded, dict):
        return ParsedContent(front_matter=None, content=text)

    raw = {str(key): value for key, value in loaded.items()}
    front_matter = FrontMatter(
        title=_optional_text(raw.pop("title", None)),
        description=_optional_text(raw.pop("description", None)),
        extra=raw,
    )
    return ParsedContent(front_matter=front_matter, content=text[match.end() :])


__all__ = ["FrontMatter", "ParsedContent", "parse_front_matter"]
