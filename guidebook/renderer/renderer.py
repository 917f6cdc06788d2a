"""Render one book document into HTML with anchors, footnotes and links."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

from .extension import DIAGRAM_LANGUAGE, BookExtension, fence_language
from .footnotes import substitute_reference_tokens
from .links import (
    LinkPolicy,
    add_external_targets,
    autolink_urls,
    convert_raw_images,
    normalize_backslashes,
    resolve_links,
    rewrite_document_extensions,
    strip_leading_slash,
)
from .models import RenderedDocument, TocEntry
from .repair import prepare_source, split_fenced_blocks

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')


class ContentRenderer:
    """Render Markdown book pages with consistent styling.

    Parameters
    ----------
    hardbreaks : bool, optional
        Turn every soft line break into ``<br />``.
    link_policy : LinkPolicy, optional
        How internal links are made correct for nested pages. One policy
        applies to a whole build.
    strip_leading_slash : bool, optional
        Drop a single leading ``/`` from internal hrefs under the
        root-relative policy.
    pygments_style : str, optional
        Name of the Pygments style used for syntax highlighting.

    Examples
    --------
    >>> renderer = ContentRenderer()
    >>> renderer.render("## Hello World")
    '<h2 id="hello-world">Hello World</h2>'
    """

    def __init__(
        self,
        *,
        hardbreaks: bool = False,
        link_policy: LinkPolicy = LinkPolicy.ROOT_RELATIVE,
        strip_leading_slash: bool = True,
        pygments_style: str = "default",
    ) -> None:
        self.hardbreaks = hardbreaks
        self.link_policy = link_policy
        self.strip_leading_slash = strip_leading_slash
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def _markdown(self, extension: BookExtension, *, full: bool = True) -> Markdown:
        extensions: list[Extension | str] = ["fenced_code", "attr_list", "tables"]
        if full:
            extensions.extend(["codehilite", "sane_lists"])
            if self.hardbreaks:
                extensions.append("nl2br")
        extensions.append(extension)
        return Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )

    def render_document(
        self, text: str, current_path: str | None = None
    ) -> RenderedDocument:
        """Render ``text`` and return the HTML with its TOC entries.

        Parameters
        ----------
        text : str
            Raw Markdown source of one document.
        current_path : str, optional
            Source path of the document relative to the book root. Link
            resolution is skipped when omitted.

        Returns
        -------
        RenderedDocument
            The page body and the level 2-4 headings it carries.
        """
        prepared = prepare_source(text)
        if not prepared.strip():
            return RenderedDocument(html="")
        extension = BookExtension()
        html = self._markdown(extension).convert(prepared)
        html = self._annotate_codehilite(html, prepared)
        return RenderedDocument(
            html=self._postprocess(html, current_path),
            toc=list(extension.toc_entries),
        )

    def render(self, text: str, current_path: str | None = None) -> str:
        """Render ``text`` into an HTML page body."""
        return self.render_document(text, current_path).html

    def extract_toc(self, text: str) -> list[TocEntry]:
        """Collect level 2-4 headings with the ids :meth:`render` assigns.

        Footnote references are not tokenized and no HTML post-processing
        runs; only the heading structure is computed.
        """
        prepared = prepare_source(text)
        if not prepared.strip():
            return []
        extension = BookExtension(tokenize_references=False)
        self._markdown(extension, full=False).convert(prepared)
        return list(extension.toc_entries)

    def _postprocess(self, html: str, current_path: str | None) -> str:
        html = rewrite_document_extensions(html)
        html = autolink_urls(html)
        html = add_external_targets(html)
        html = convert_raw_images(html)
        html = substitute_reference_tokens(html)
        html = normalize_backslashes(html)
        if current_path is not None:
            html = resolve_links(html, current_path, self.link_policy)
        # after resolution, so a stripped "/x" is never re-read as page-relative
        if self.strip_leading_slash and self.link_policy is LinkPolicy.ROOT_RELATIVE:
            html = strip_leading_slash(html)
        return html

    def _annotate_codehilite(self, html: str, source_markdown: str) -> str:
        """Attach language metadata to each highlighted block in converted markdown."""
        languages = [
            fence_language(run[0]) or "text"
            for is_code, run in split_fenced_blocks(source_markdown.split("\n"))
            if is_code and not fence_language(run[0]).startswith(DIAGRAM_LANGUAGE)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(match: re.Match[str]) -> str:
            lang = next(lang_iter, "text")
            return (
                f'<div class="codehilite" data-language="{escape(lang, quote=True)}">'
            )

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


__all__ = ["ContentRenderer"]
