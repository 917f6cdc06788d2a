"""Cyclopts CLI entrypoint for building books and inspecting documents.

The ``guidebook`` console script defined here renders a book directory into a
static HTML site and prints the table of contents a single document would
expose. Every parameter can also be supplied through a ``GUIDEBOOK_``
prefixed environment variable.

Examples
--------
Build the book in ``docs`` into ``_book``:

>>> from guidebook.cli import app
>>> app.run(["build", "docs", "--output", "_book"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import BookBuilder
from .config import load_book_config
from .frontmatter import parse_front_matter
from .renderer import ContentRenderer

DEFAULT_SOURCE = Path()
DEFAULT_OUTPUT = Path("_book")
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = App(name="guidebook", config=cyclopts.config.Env("GUIDEBOOK_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _set_verbosity(*, verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command(help="Render a book directory into a static HTML site.")
def build(
    source: typ.Annotated[
        Path, Parameter(help="Book directory holding SUMMARY.md")
    ] = DEFAULT_SOURCE,
    *,
    output: typ.Annotated[
        Path, Parameter(help="Directory that receives the site")
    ] = DEFAULT_OUTPUT,
    skip_search_index: typ.Annotated[
        bool, Parameter(help="Do not write search_index.json")
    ] = False,
    verbose: typ.Annotated[bool, Parameter(help="Log debug messages")] = False,
) -> None:
    """Build the book rooted at ``source``.

    Parameters
    ----------
    source : Path, optional
        Book directory; defaults to the current directory.
    output : Path, optional
        Output directory; defaults to ``_book``.
    skip_search_index : bool, optional
        Skip writing the search index.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    OutlineNotFoundError
        If the book has no ``SUMMARY.md``.
    """
    _set_verbosity(verbose=verbose)
    builder = BookBuilder(source, output, skip_search_index=skip_search_index)
    stats = builder.run()
    for path in stats.written:
        print(f"wrote {_format_path(path)}")
    for missing in stats.missing:
        print(f"missing {missing}")


@app.command(help="Print the table of contents extracted from one document.")
def toc(
    file: typ.Annotated[Path, Parameter(help="Markdown document to inspect")],
    *,
    verbose: typ.Annotated[bool, Parameter(help="Log debug messages")] = False,
) -> None:
    """Print the level 2-4 headings of ``file`` with their anchors.

    Front matter is skipped and settings from a ``book.yaml`` beside the
    document are honoured.
    """
    _set_verbosity(verbose=verbose)
    config = load_book_config(file.parent)
    renderer = ContentRenderer(
        hardbreaks=config.hardbreaks,
        link_policy=config.link_policy,
        strip_leading_slash=config.strip_leading_slash,
        pygments_style=config.pygments_style,
    )
    content = parse_front_matter(file.read_text(encoding="utf-8")).content
    for entry in renderer.extract_toc(content):
        indent = "  " * (entry.level - 2)
        print(f"{indent}- {entry.text} (#{entry.slug})")


def main() -> None:
    """Configure logging and invoke the Cyclopts application.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
