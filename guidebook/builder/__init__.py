"""Turn a book directory into a static HTML site."""

from .book import BookBuilder, BuildStats, SearchEntry, strip_tags
from .imports import expand_imports
from .variables import expand_variables

__all__ = [
    "BookBuilder",
    "BuildStats",
    "SearchEntry",
    "expand_imports",
    "expand_variables",
    "strip_tags",
]
