"""Load ``book.yaml``/``book.json`` into a :class:`BookConfig`."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from guidebook.renderer.links import LinkPolicy

from .models import BookConfig, BookConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path

CONFIG_FILENAMES = ("book.yaml", "book.yml", "book.json")


def _optional_str(value: object | None, field: str, default: str) -> str:
    """Return ``value`` as a stripped string, or ``default`` when unset."""
    if value is None:
        return default
    if not isinstance(value, str | int | float):
        msg = f"'{field}' must be a string, not {type(value).__name__}."
        raise BookConfigError(msg)
    return str(value).strip()


def _flag(value: object | None, field: str, *, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        msg = f"'{field}' must be true or false."
        raise BookConfigError(msg)
    return value


def _mapping(value: object | None, field: str) -> dict[str, typ.Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"'{field}' must be a mapping."
        raise BookConfigError(msg)
    return {str(key): item for key, item in value.items()}


def _plugins(value: object | None) -> list[str]:
    match value:
        case None:
            return []
        case list():
            return [str(item).strip() for item in value if str(item).strip()]
        case str():
            return [segment for segment in value.replace(",", " ").split() if segment]
        case _:
            msg = "'plugins' must be a list of plugin names."
            raise BookConfigError(msg)


def _link_policy(value: object | None) -> LinkPolicy:
    if value is None:
        return LinkPolicy.ROOT_RELATIVE
    try:
        return LinkPolicy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(policy.value for policy in LinkPolicy)
        msg = f"Unknown link_policy '{value}'; expected one of: {choices}."
        raise BookConfigError(msg) from None


def build_book_config(raw: typ.Mapping[str, typ.Any]) -> BookConfig:
    """Validate a parsed configuration mapping and build a :class:`BookConfig`.

    Raises
    ------
    BookConfigError
        If a field holds a value of the wrong kind.
    """
    styles = {
        key: str(path) for key, path in _mapping(raw.get("styles"), "styles").items()
    }
    return BookConfig(
        title=_optional_str(raw.get("title"), "title", ""),
        plugins=_plugins(raw.get("plugins")),
        styles=styles,
        variables=_mapping(raw.get("variables"), "variables"),
        hardbreaks=_flag(raw.get("hardbreaks"), "hardbreaks", default=False),
        link_policy=_link_policy(raw.get("link_policy")),
        strip_leading_slash=_flag(
            raw.get("strip_leading_slash"), "strip_leading_slash", default=True
        ),
        pygments_style=_optional_str(
            raw.get("pygments_style"), "pygments_style", "default"
        ),
        language=_optional_str(raw.get("language"), "language", "en"),
    )


def find_config_file(book_dir: Path) -> Path | None:
    """Return the first configuration file present in ``book_dir``."""
    for name in CONFIG_FILENAMES:
        candidate = book_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_book_config(book_dir: Path) -> BookConfig:
    """Load the configuration of the book rooted at ``book_dir``.

    ``book.yaml`` wins over ``book.yml``, which wins over ``book.json``. JSON
    is read through the same YAML 1.2 loader since it is a subset of YAML.
    A book without any configuration file uses the defaults.

    Parameters
    ----------
    book_dir : Path
        Directory holding the book sources.

    Returns
    -------
    BookConfig
        Parsed configuration.

    Raises
    ------
    TypeError
        If the top-level structure is not a mapping.
    BookConfigError
        If a field holds an invalid value.
    YAMLError
        If the file cannot be parsed.

    Examples
    --------
    >>> from pathlib import Path
    >>> from guidebook.config import load_book_config
    >>> load_book_config(Path("docs")).title  # doctest: +SKIP
    'User Guide'
    """
    path = find_config_file(book_dir)
    if path is None:
        return BookConfig()

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8-sig") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return build_book_config(loaded)


__all__ = ["CONFIG_FILENAMES", "build_book_config", "find_config_file", "load_book_config"]
