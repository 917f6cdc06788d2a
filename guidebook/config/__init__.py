"""Load and validate book configuration.

The primary entry point is :func:`load_book_config`, which reads
``book.yaml`` (or ``book.yml``/``book.json``) from a book directory, applies
defaults and returns a :class:`BookConfig` the builder consumes.

Examples
--------
>>> from guidebook.config import BookConfig
>>> BookConfig(plugins=["-back-to-top-button"]).is_plugin_enabled("back-to-top-button")
False
"""

from .loader import build_book_config, load_book_config
from .models import DEFAULT_ENABLED_PLUGINS, BookConfig, BookConfigError

__all__ = [
    "DEFAULT_ENABLED_PLUGINS",
    "BookConfig",
    "BookConfigError",
    "build_book_config",
    "load_book_config",
]
