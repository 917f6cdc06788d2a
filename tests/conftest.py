"""Shared fixtures that lay out sample books on disk."""

from __future__ import annotations

import typing as typ

import pytest

if typ.TYPE_CHECKING:
    from pathlib import Path

SAMPLE_BOOK: dict[str, str] = {
    "book.yaml": "title: Guide\nvariables:\n  version: '2.1'\n",
    "SUMMARY.md": (
        "# Summary\n\n"
        "* [Introduction](README.md)\n"
        "* [Setup](guide/setup.md)\n"
        "    * [Install](guide/install.md#steps)\n"
        "* [Missing](missing.md)\n\n"
        "## Reference\n\n"
        "* [FAQ](faq.md)\n"
    ),
    "README.md": "# Welcome\n\nStart with [setup](guide/setup.md).\n",
    "GLOSSARY.md": "# Glossary\n\n## API\nApplication programming interface\n",
    "guide/setup.md": (
        "---\ntitle: Setting Up\ndescription: Preparing a machine\n---\n"
        "## Requirements\n\n"
        "Use the API of version {{ book.version }}.[^1]\n\n"
        "Continue with [install](install.md#steps) or see the [FAQ](../faq.md).\n\n"
        "[^1]: Older versions are unsupported.\n"
    ),
    "guide/install.md": "# Install\n\n## Steps\n\nRun the installer.\n",
    "faq.md": "# FAQ\n\n```mermaid\ngraph TD; A-->B\n```\n",
}


def _write_files(root: Path, files: typ.Mapping[str, str]) -> Path:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_files() -> typ.Callable[[Path, typ.Mapping[str, str]], Path]:
    """Return a helper writing ``{relative path: content}`` below a root."""
    return _write_files


@pytest.fixture
def book_files() -> dict[str, str]:
    """Return the sources of a small single-language book."""
    return dict(SAMPLE_BOOK)


@pytest.fixture
def sample_book(tmp_path: Path) -> Path:
    """Return a small single-language book directory."""
    return _write_files(tmp_path / "book", SAMPLE_BOOK)
