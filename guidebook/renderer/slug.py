"""Deterministic heading slugs shared by the renderer and the TOC extractor.

Example
-------
>>> from guidebook.renderer.slug import slugify
>>> slugify("Hello World")
'hello-world'
>>> slugify("A.B.C")
'abc'
>>> slugify("デザイン 一覧")
'デザイン-一覧'
"""

from __future__ import annotations


def slugify(text: str) -> str:
    """Return a URL-safe identifier for ``text``.

    ASCII letters are lower-cased, alphanumerics, ``-`` and ``_`` are kept,
    whitespace becomes ``-`` and any other ASCII punctuation is dropped.
    Characters outside the ASCII range are preserved unchanged so headings in
    non-Latin scripts keep readable anchors. Runs of ``-`` collapse into one
    and leading or trailing ``-`` are trimmed.

    Parameters
    ----------
    text : str
        Plain heading text (inline markup already removed).

    Returns
    -------
    str
        The slug; empty when ``text`` holds nothing but punctuation.
    """
    kept: list[str] = []
    for char in text:
        if char.isspace():
            kept.append("-")
        elif not char.isascii():
            kept.append(char)
        elif char.isalnum() or char in "-_":
            kept.append(char.lower())
    return "-".join(part for part in "".join(kept).split("-") if part)


__all__ = ["slugify"]
