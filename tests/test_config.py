"""Tests for book configuration loading."""

from __future__ import annotations

import typing as typ

import pytest

from guidebook.config import BookConfig, BookConfigError, load_book_config
from guidebook.config.loader import build_book_config, find_config_file
from guidebook.renderer import LinkPolicy

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_defaults_without_config_file(tmp_path: Path) -> None:
    """A book without configuration uses the defaults."""
    assert load_book_config(tmp_path) == BookConfig()


def test_load_yaml_config(tmp_path: Path) -> None:
    """Every supported key is read from ``book.yaml``."""
    (tmp_path / "book.yaml").write_text(
        "title: User Guide\n"
        "plugins: [-fontsettings, search]\n"
        "styles:\n  website: styles/site.css\n"
        "variables:\n  version: '2.1'\n"
        "hardbreaks: true\n"
        "link_policy: hop-count\n"
        "strip_leading_slash: false\n"
        "pygments_style: monokai\n"
        "language: ja\n",
        encoding="utf-8",
    )
    config = load_book_config(tmp_path)
    assert config.title == "User Guide"
    assert config.plugins == ["-fontsettings", "search"]
    assert config.website_style == "styles/site.css"
    assert config.variables == {"version": "2.1"}
    assert config.hardbreaks is True
    assert config.link_policy is LinkPolicy.HOP_COUNT
    assert config.strip_leading_slash is False
    assert config.pygments_style == "monokai"
    assert config.language == "ja"


def test_load_json_config_with_bom(tmp_path: Path) -> None:
    """``book.json`` is accepted, even with a byte-order mark."""
    (tmp_path / "book.json").write_text(
        '\ufeff{"title": "JSON Book", "plugins": ["mermaid-md-adoc"]}', encoding="utf-8"
    )
    config = load_book_config(tmp_path)
    assert config.title == "JSON Book"
    assert config.plugins == ["mermaid-md-adoc"]


def test_yaml_wins_over_json(tmp_path: Path) -> None:
    """``book.yaml`` takes precedence when both files exist."""
    (tmp_path / "book.json").write_text('{"title": "json"}', encoding="utf-8")
    (tmp_path / "book.yaml").write_text("title: yaml\n", encoding="utf-8")
    assert find_config_file(tmp_path) == tmp_path / "book.yaml"
    assert load_book_config(tmp_path).title == "yaml"


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    """A list at the top level is not a configuration."""
    (tmp_path / "book.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(TypeError, match="mapping"):
        load_book_config(tmp_path)


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"link_policy": "sideways"}, "link_policy"),
        ({"hardbreaks": "yes"}, "hardbreaks"),
        ({"plugins": 3}, "plugins"),
        ({"variables": ["a"]}, "variables"),
        ({"title": ["a"]}, "title"),
    ],
)
def test_invalid_values(raw: dict[str, object], message: str) -> None:
    """Wrongly typed values raise :class:`BookConfigError`."""
    with pytest.raises(BookConfigError, match=message):
        build_book_config(raw)


def test_plugins_from_comma_string() -> None:
    """A comma-separated plugin string is split into names."""
    assert build_book_config({"plugins": "a, -b"}).plugins == ["a", "-b"]


def test_plugin_toggles() -> None:
    """Defaults can be disabled and others enabled explicitly."""
    config = BookConfig(plugins=["-back-to-top-button", "custom"])
    assert not config.is_plugin_enabled("back-to-top-button")
    assert config.is_plugin_enabled("custom")
    assert config.is_plugin_enabled("mermaid-md-adoc")
    assert not config.is_plugin_enabled("unknown")
