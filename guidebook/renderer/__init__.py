"""Content rendering pipeline for book documents."""

from __future__ import annotations

from .links import LinkPolicy, output_path_for, page_path_for
from .models import RenderedDocument, TocEntry
from .renderer import ContentRenderer
from .slug import slugify

__all__ = [
    "ContentRenderer",
    "LinkPolicy",
    "RenderedDocument",
    "TocEntry",
    "output_path_for",
    "page_path_for",
    "slugify",
]
