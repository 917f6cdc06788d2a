"""Render a directory of Markdown documents into a linked static HTML book.

This package exposes the CLI entry points used by the ``guidebook`` console
script together with the pieces it is built from: the outline parser, the
content renderer, the glossary annotator and the book builder.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that configures logging and invokes the app.

Examples
--------
>>> from guidebook import main
>>> main()  # doctest: +SKIP
>>> from guidebook import app
>>> callable(app)
True
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
