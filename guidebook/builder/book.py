"""Build a whole book directory into a static HTML site.

:class:`BookBuilder` ties the pieces together: it loads the configuration,
outline and glossary, renders every chapter the outline links to, wraps each
rendered body in the ``page.jinja`` template and writes a search index.

Example
-------
>>> from pathlib import Path
>>> from guidebook.builder import BookBuilder
>>> stats = BookBuilder(Path("docs"), Path("_book")).run()  # doctest: +SKIP
>>> stats.pages  # doctest: +SKIP
12
"""

from __future__ import annotations

import dataclasses as dc
import html
import logging
import re
import typing as typ
from pathlib import Path

import msgspec
from jinja2 import Environment, FileSystemLoader, select_autoescape

from guidebook.config import BookConfig, load_book_config
from guidebook.config.loader import find_config_file
from guidebook.frontmatter import parse_front_matter
from guidebook.glossary import Glossary, annotate, load_glossary
from guidebook.outline import (
    Language,
    Outline,
    OutlineLink,
    OutlineNode,
    OutlinePartTitle,
    OutlineSeparator,
    load_languages,
    load_outline,
)
from guidebook.renderer import ContentRenderer, LinkPolicy, output_path_for, page_path_for
from guidebook.renderer.links import INDEX_PAGE, ROOT_README, document_depth
from guidebook.renderer.repair import BYTE_ORDER_MARK

from .imports import expand_imports
from .variables import expand_variables

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from guidebook.renderer import TocEntry

logger = logging.getLogger(__name__)

README_FILENAME = ROOT_README
INDEX_FILENAME = INDEX_PAGE
ASSETS_DIRNAME = "gitbook"
PYGMENTS_CSS_FILENAME = "pygments.css"
SEARCH_INDEX_FILENAME = "search_index.json"
TAG_PATTERN = re.compile(r"<[^>]+>")
DIAGRAM_MARKER = '<div class="mermaid">'


class SearchEntry(msgspec.Struct):
    """One page in ``search_index.json``."""

    title: str
    path: str
    content: str


@dc.dataclass(slots=True)
class BuildStats:
    """Counters reported once a build finishes."""

    pages: int = 0
    missing: list[str] = dc.field(default_factory=list)
    written: list[Path] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class NavItem:
    """Template-facing view of one outline node."""

    kind: str
    title: str = ""
    path: str | None = None
    active: bool = False
    children: list[NavItem] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class PageLink:
    """Target of the previous/next page links."""

    title: str
    path: str


def strip_tags(markup: str) -> str:
    """Return the text of ``markup`` with tags removed and whitespace folded."""
    return " ".join(html.unescape(TAG_PATTERN.sub(" ", markup)).split())


def _document_path(path: str) -> str:
    """Return the source path an outline link points at, without anchors."""
    return path.split("#", 1)[0].lstrip("/")


def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8").replace(BYTE_ORDER_MARK, "")


class BookBuilder:
    """Render the book in ``source`` into ``output``.

    Parameters
    ----------
    source : Path
        Book directory holding ``SUMMARY.md`` and the chapter documents.
    output : Path
        Directory that receives the generated site.
    skip_search_index : bool, optional
        Do not write ``search_index.json``.
    templates_dir : Path, optional
        Directory containing Jinja templates; defaults to the package
        templates.
    """

    def __init__(
        self,
        source: Path,
        output: Path,
        *,
        skip_search_index: bool = False,
        templates_dir: Path | None = None,
    ) -> None:
        self.source = source
        self.output = output
        self.skip_search_index = skip_search_index
        self.templates_dir = templates_dir or Path(__file__).resolve().parents[1] / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def run(self) -> BuildStats:
        """Build every language edition, or the single book, and return stats.

        Raises
        ------
        OutlineNotFoundError
            If a book (or language edition) has no ``SUMMARY.md``.
        BookConfigError
            If the configuration holds invalid values.
        """
        config = load_book_config(self.source)
        languages = load_languages(self.source)
        stats = BuildStats()
        if not languages:
            _BookRun(self, self.source, self.output, config, stats).build()
            return stats

        self.output.mkdir(parents=True, exist_ok=True)
        self._write_language_index(languages, config, stats)
        for language in languages:
            language_source = self.source / language.code
            language_config = config
            if find_config_file(language_source) is not None:
                language_config = load_book_config(language_source)
            logger.info("Building %s (%s)", language.title, language.code)
            _BookRun(
                self, language_source, self.output / language.code, language_config, stats
            ).build()
        return stats

    def _write_language_index(
        self, languages: list[Language], config: BookConfig, stats: BuildStats
    ) -> None:
        template = self.env.get_template("langs.jinja")
        path = self.output / INDEX_FILENAME
        path.write_text(
            template.render(languages=languages, title=config.title), encoding="utf-8"
        )
        stats.written.append(path)


class _BookRun:
    """State for building one book (or one language edition)."""

    def __init__(
        self,
        builder: BookBuilder,
        source: Path,
        output: Path,
        config: BookConfig,
        stats: BuildStats,
    ) -> None:
        self.builder = builder
        self.source = source
        self.output = output
        self.config = config
        self.stats = stats
        self.template = builder.env.get_template("page.jinja")
        self.renderer = ContentRenderer(
            hardbreaks=config.hardbreaks,
            link_policy=config.link_policy,
            strip_leading_slash=config.strip_leading_slash,
            pygments_style=config.pygments_style,
        )
        self.outline: Outline = Outline()
        self.glossary: Glossary = Glossary()
        self.search_entries: list[SearchEntry] = []

    def build(self) -> None:
        self.outline = load_outline(self.source)
        self.glossary = load_glossary(self.source)
        if self.glossary:
            logger.info("Loaded glossary with %d terms", len(self.glossary))
        self.output.mkdir(parents=True, exist_ok=True)
        self._write_assets()

        chapters = self._chapters()
        readme = self.source / README_FILENAME
        if readme.is_file():
            first = chapters[0] if chapters else None
            self._build_page(
                source_path=README_FILENAME,
                output_path=INDEX_FILENAME,
                title=self.config.title or "Introduction",
                previous=None,
                following=PageLink(first[0], output_path_for(first[1])) if first else None,
                search_title="Home",
            )

        for index, (title, path) in enumerate(chapters):
            previous = chapters[index - 1] if index > 0 else None
            following = chapters[index + 1] if index + 1 < len(chapters) else None
            self._build_page(
                source_path=path,
                output_path=output_path_for(path),
                title=title,
                previous=PageLink(previous[0], output_path_for(previous[1]))
                if previous
                else None,
                following=PageLink(following[0], output_path_for(following[1]))
                if following
                else None,
            )

        if not self.builder.skip_search_index:
            self._write_search_index()

    def _chapters(self) -> list[tuple[str, str]]:
        """Return ``(title, source path)`` for each chapter that exists.

        Paths are visited depth-first in outline order. A path linked more
        than once (for example with different anchors) is built once, and a
        missing document is reported and skipped.
        """
        chapters: list[tuple[str, str]] = []
        seen: set[str] = set()
        for link in self.outline.iter_links():
            if not link.path:
                continue
            path = _document_path(link.path)
            if not path or path in seen or path == README_FILENAME:
                continue
            seen.add(path)
            if not (self.source / path).is_file():
                logger.warning("%s not found", path)
                self.stats.missing.append(path)
                continue
            chapters.append((link.title, path))
        return chapters

    def _nav(self, items: cabc.Iterable[OutlineNode], active: str) -> list[NavItem]:
        nav: list[NavItem] = []
        for node in items:
            match node:
                case OutlineSeparator():
                    nav.append(NavItem(kind="separator"))
                case OutlinePartTitle(text=text):
                    nav.append(NavItem(kind="part", title=text))
                case OutlineLink(title=title, path=path, children=children):
                    target = None
                    if path:
                        document, _, anchor = path.partition("#")
                        target = page_path_for(document)
                        if anchor:
                            target = f"{target}#{anchor}"
                    nav.append(
                        NavItem(
                            kind="link",
                            title=title,
                            path=target,
                            active=target is not None and target.split("#", 1)[0] == active,
                            children=self._nav(children, active),
                        )
                    )
        return nav

    def _prepare(self, path: Path, text: str) -> tuple[str, str | None, str | None]:
        """Apply front matter, imports and variables to one document."""
        parsed = parse_front_matter(text)
        content = expand_imports(parsed.content, path)
        content = expand_variables(content, self.config.variables)
        front_matter = parsed.front_matter
        if front_matter is None:
            return content, None, None
        return content, front_matter.title, front_matter.description

    def _build_page(
        self,
        *,
        source_path: str,
        output_path: str,
        title: str,
        previous: PageLink | None,
        following: PageLink | None,
        search_title: str | None = None,
    ) -> None:
        file_path = self.source / source_path
        content, fm_title, description = self._prepare(file_path, _read_source(file_path))
        document = self.renderer.render_document(content, source_path)
        body = annotate(document.html, self.glossary)
        page_title = fm_title or title
        html_text = self._render_template(
            content=body,
            toc=document.toc,
            page_title=page_title,
            description=description,
            output_path=output_path,
            previous=previous,
            following=following,
        )
        destination = self.output / output_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(html_text, encoding="utf-8")
        self.stats.pages += 1
        self.stats.written.append(destination)
        self.search_entries.append(
            SearchEntry(
                title=search_title or page_title,
                path=output_path,
                content=strip_tags(document.html),
            )
        )

    def _render_template(
        self,
        *,
        content: str,
        toc: list[TocEntry],
        page_title: str,
        description: str | None,
        output_path: str,
        previous: PageLink | None,
        following: PageLink | None,
    ) -> str:
        depth = document_depth(output_path)
        root = "../" * depth if depth else "./"
        root_relative = self.config.link_policy is LinkPolicy.ROOT_RELATIVE
        context = {
            "config": self.config,
            "page_title": page_title,
            "description": description,
            "content": content,
            "toc": toc,
            "nav": self._nav(self.outline.items, output_path),
            "current_path": output_path,
            "base_href": root if root_relative else None,
            "link_prefix": "" if root_relative else root,
            "anchor_prefix": output_path if root_relative else "",
            "previous": previous,
            "next": following,
            "has_diagrams": DIAGRAM_MARKER in content,
            "plugins": {
                "back_to_top": self.config.is_plugin_enabled("back-to-top-button"),
                "mermaid": self.config.is_plugin_enabled("mermaid-md-adoc"),
            },
        }
        return self.template.render(**context)

    def _write_assets(self) -> None:
        assets = self.output / ASSETS_DIRNAME
        assets.mkdir(parents=True, exist_ok=True)
        stylesheet = assets / PYGMENTS_CSS_FILENAME
        stylesheet.write_text(self.renderer.stylesheet, encoding="utf-8")
        self.stats.written.append(stylesheet)
        website_style = self.config.website_style
        if website_style:
            custom = self.source / website_style
            if custom.is_file():
                target = assets / "style.css"
                target.write_text(custom.read_text(encoding="utf-8"), encoding="utf-8")
                self.stats.written.append(target)
            else:
                logger.warning("Custom style %s not found", website_style)

    def _write_search_index(self) -> None:
        path = self.output / SEARCH_INDEX_FILENAME
        path.write_bytes(msgspec.json.encode(self.search_entries))
        self.stats.written.append(path)


__all__ = ["BuildStats", "BookBuilder", "NavItem", "SearchEntry", "strip_tags"]
