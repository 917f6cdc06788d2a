"""Typed dataclasses describing book configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from guidebook.renderer.links import LinkPolicy

DEFAULT_ENABLED_PLUGINS: tuple[str, ...] = (
    "collapsible-chapters",
    "back-to-top-button",
    "mermaid-md-adoc",
    "fontsettings",
)


class BookConfigError(ValueError):
    """Raised when the book configuration holds an invalid value."""


@dc.dataclass(slots=True)
class BookConfig:
    """Book-wide settings read from ``book.yaml`` or ``book.json``.

    Attributes
    ----------
    title : str
        Book title shown in page headers and the HTML ``<title>``.
    plugins : list[str]
        Plugin names; a ``-name`` entry disables a default plugin.
    styles : dict[str, str]
        Extra stylesheets keyed by output kind (``"website"``).
    variables : dict[str, Any]
        Values exposed to documents as ``{{ book.<name> }}``.
    hardbreaks : bool
        Render every soft line break as ``<br />``.
    link_policy : LinkPolicy
        How internal links are made correct for nested pages.
    strip_leading_slash : bool
        Drop a leading ``/`` from internal hrefs (root-relative policy only).
    pygments_style : str
        Pygments style name for highlighted code.
    language : str
        Value of the HTML ``lang`` attribute.
    """

    title: str = ""
    plugins: list[str] = dc.field(default_factory=list)
    styles: dict[str, str] = dc.field(default_factory=dict)
    variables: dict[str, typ.Any] = dc.field(default_factory=dict)
    hardbreaks: bool = False
    link_policy: LinkPolicy = LinkPolicy.ROOT_RELATIVE
    strip_leading_slash: bool = True
    pygments_style: str = "default"
    language: str = "en"

    def is_plugin_enabled(self, name: str) -> bool:
        """Return whether plugin ``name`` is active for this book.

        Examples
        --------
        >>> BookConfig(plugins=["-fontsettings"]).is_plugin_enabled("fontsettings")
        False
        >>> BookConfig().is_plugin_enabled("back-to-top-button")
        True
        """
        if f"-{name}" in self.plugins:
            return False
        if name in self.plugins:
            return True
        return name in DEFAULT_ENABLED_PLUGINS

    @property
    def website_style(self) -> str | None:
        """Return the custom website stylesheet path, if configured."""
        return self.styles.get("website")


__all__ = ["DEFAULT_ENABLED_PLUGINS", "BookConfig", "BookConfigError"]
