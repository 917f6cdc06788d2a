"""Post-process rendered HTML links and resolve them against the page path.

Two link policies exist and a build uses exactly one of them:

``ROOT_RELATIVE``
    Document-relative targets are rewritten relative to the output root and
    anchor-only targets gain the current page path. Pages declare a
    ``<base href>`` pointing at the root, so every internal link resolves the
    same way no matter how deep the page lives.
``HOP_COUNT``
    Root-relative targets (``/guide/intro.html``) get one ``../`` per
    directory level of the current page. Everything else is left relative to
    the page itself.

Example
-------
>>> from guidebook.renderer.links import LinkPolicy, resolve_links
>>> resolve_links('<a href="../b.html">b</a>', "part/a.md", LinkPolicy.ROOT_RELATIVE)
'<a href="b.html">b</a>'
>>> resolve_links('<a href="/b.html">b</a>', "x/y/a.md", LinkPolicy.HOP_COUNT)
'<a href="../../b.html">b</a>'
"""

from __future__ import annotations

import enum
import posixpath
import re
import typing as typ
from html import escape
from urllib.parse import urlsplit

from guidebook.html_scan import ElementStack, rewrite_text

if typ.TYPE_CHECKING:
    import collections.abc as cabc

ATTRIBUTE_PATTERN = re.compile(
    r"""(?P<name>\b(?:href|src))=(?P<quote>["'])(?P<value>.*?)(?P=quote)""",
    re.IGNORECASE,
)
ANCHOR_TAG_PATTERN = re.compile(r"<a\s[^>]*>", re.IGNORECASE)
HREF_VALUE_PATTERN = re.compile(r"""\bhref=(["'])(.*?)\1""", re.IGNORECASE)
BARE_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+")
RAW_IMAGE_PATTERN = re.compile(
    r"!\[(?P<alt>[^\]\n]*)\]\(\s*<?(?P<src>[^)<>\n]+?)>?(?:\s+\"(?P<title>[^\"]*)\")?\s*\)"
)
DOCUMENT_SUFFIXES = (".md", ".markdown")
ROOT_README = "README.md"
README_PAGE = "README.html"
INDEX_PAGE = "index.html"
TRAILING_PUNCTUATION = ".,;:)!?"
AUTOLINK_EXCLUDED = frozenset({"a", "code", "pre", "script", "style"})
RAW_IMAGE_EXCLUDED = frozenset({"code", "pre", "script", "style"})


class LinkPolicy(enum.StrEnum):
    """How internal link targets are made correct for nested pages."""

    ROOT_RELATIVE = "root-relative"
    HOP_COUNT = "hop-count"


def is_external(target: str) -> bool:
    """Return ``True`` for targets that leave the book (schemes, ``//host``)."""
    if target.startswith("//"):
        return True
    scheme = urlsplit(target).scheme.lower()
    # single letters are Windows drive names, not schemes
    return len(scheme) > 1


def output_path_for(source_path: str) -> str:
    """Map a source document path to the HTML file it renders into."""
    path = source_path.lstrip("/")
    lower = path.lower()
    for suffix in DOCUMENT_SUFFIXES:
        if lower.endswith(suffix):
            return path[: -len(suffix)] + ".html"
    return path


def page_path_for(source_path: str) -> str:
    """Return the page a source document is written to.

    The root ``README.md`` is the book's index page; every other document
    follows :func:`output_path_for`.

    Examples
    --------
    >>> page_path_for("README.md")
    'index.html'
    >>> page_path_for("guide/README.md")
    'guide/README.html'
    """
    path = source_path.lstrip("/")
    if path == ROOT_README:
        return INDEX_PAGE
    return output_path_for(path)


def document_depth(source_path: str) -> int:
    """Return how many directories deep ``source_path`` sits below the root."""
    return source_path.strip("/").count("/")


def _rewrite_attributes(html: str, rewrite: cabc.Callable[[str, str], str]) -> str:
    """Apply ``rewrite(name, value)`` to every ``href``/``src`` attribute."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group("name")
        value = match.group("value")
        new_value = rewrite(name.lower(), value)
        if new_value == value:
            return match.group(0)
        quote = match.group("quote")
        return f"{name}={quote}{new_value}{quote}"

    return ATTRIBUTE_PATTERN.sub(_replace, html)


def rewrite_document_extensions(html: str) -> str:
    """Point internal ``.md`` link targets at their ``.html`` output."""

    def _rewrite(name: str, value: str) -> str:
        if name != "href" or not value or is_external(value):
            return value
        path, sep, rest = _split_target(value)
        if not path.lower().endswith(DOCUMENT_SUFFIXES):
            return value
        return f"{output_path_for_keep_slash(path)}{sep}{rest}"

    return _rewrite_attributes(html, _rewrite)


def output_path_for_keep_slash(path: str) -> str:
    """Like :func:`output_path_for` but keep a leading slash intact."""
    if path.startswith("/"):
        return "/" + output_path_for(path)
    return output_path_for(path)


def _split_target(value: str) -> tuple[str, str, str]:
    """Split ``value`` into path, the ``?``/``#`` separator and the rest."""
    for idx, char in enumerate(value):
        if char in "?#":
            return value[:idx], char, value[idx + 1 :]
    return value, "", ""


def _link_bare_urls(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        url = match.group(0)
        trimmed = url.rstrip(TRAILING_PUNCTUATION)
        if not trimmed.partition("://")[2]:
            return url
        return f'<a href="{trimmed}">{trimmed}</a>{url[len(trimmed):]}'

    return BARE_URL_PATTERN.sub(_replace, text)


def autolink_urls(html: str) -> str:
    """Wrap bare ``http(s)://`` URLs that sit outside links and code."""
    stack = ElementStack(excluded_tags=AUTOLINK_EXCLUDED)
    return rewrite_text(html, stack, _link_bare_urls)


def add_external_targets(html: str) -> str:
    """Open external anchors in a new tab unless a target is already set."""

    def _replace(match: re.Match[str]) -> str:
        tag = match.group(0)
        href = HREF_VALUE_PATTERN.search(tag)
        if href is None or not is_external(href.group(2)):
            return tag
        if href.group(2).lower().startswith(("mailto:", "tel:", "javascript:")):
            return tag
        additions = []
        if not re.search(r"\btarget\s*=", tag, re.IGNORECASE):
            additions.append('target="_blank"')
        if not re.search(r"\brel\s*=", tag, re.IGNORECASE):
            additions.append('rel="noopener noreferrer"')
        if not additions:
            return tag
        return f"{tag[:-1]} {' '.join(additions)}>"

    return ANCHOR_TAG_PATTERN.sub(_replace, html)


def _images_from_text(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        src = escape(match.group("src").strip(), quote=True)
        alt = escape(match.group("alt"), quote=True)
        title = match.group("title")
        title_attr = f' title="{escape(title, quote=True)}"' if title else ""
        return f'<img src="{src}" alt="{alt}"{title_attr} />'

    return RAW_IMAGE_PATTERN.sub(_replace, text)


def convert_raw_images(html: str) -> str:
    """Turn leftover ``![alt](src)`` text (for example in raw HTML) into images."""
    stack = ElementStack(excluded_tags=RAW_IMAGE_EXCLUDED)
    return rewrite_text(html, stack, _images_from_text)


def normalize_backslashes(html: str) -> str:
    """Use forward slashes in internal ``href``/``src`` paths."""

    def _rewrite(_name: str, value: str) -> str:
        if "\\" not in value or is_external(value):
            return value
        return value.replace("\\", "/")

    return _rewrite_attributes(html, _rewrite)


def strip_leading_slash(html: str) -> str:
    """Drop a single leading ``/`` from internal ``href`` targets."""

    def _rewrite(name: str, value: str) -> str:
        if name != "href" or not value.startswith("/") or value.startswith("//"):
            return value
        return value[1:]

    return _rewrite_attributes(html, _rewrite)


def _resolve_against(base_dir: str, value: str) -> str:
    """Resolve a document-relative ``value`` to a root-relative path."""
    path, sep, rest = _split_target(value)
    if not path:
        return value
    joined = posixpath.normpath(posixpath.join(base_dir, path))
    while joined.startswith("../"):
        joined = joined[3:]
    if joined in ("..", "."):
        joined = ""
    if path.endswith("/") and joined:
        joined = f"{joined}/"
    return f"{joined}{sep}{rest}" if joined or sep else "./"


def _index_alias(base_dir: str, value: str) -> str:
    """Point a link at the root ``README.html`` to the index page instead."""
    path, sep, rest = _split_target(value)
    if posixpath.basename(path) != README_PAGE or is_external(value):
        return value
    joined = path[1:] if path.startswith("/") else posixpath.join(base_dir, path)
    resolved = posixpath.normpath(joined)
    while resolved.startswith("../"):
        resolved = resolved[3:]
    if resolved != README_PAGE:
        return value
    return f"{path[: -len(README_PAGE)]}{INDEX_PAGE}{sep}{rest}"


def resolve_links(html: str, current_path: str, policy: LinkPolicy) -> str:
    """Make internal targets in ``html`` correct for the page at ``current_path``.

    Links to the root ``README`` are pointed at ``index.html``, where that
    document is written.

    Parameters
    ----------
    html : str
        Rendered page body.
    current_path : str
        Source path of the page relative to the book root, for example
        ``"guide/setup/install.md"``.
    policy : LinkPolicy
        The build-wide link policy.

    Returns
    -------
    str
        HTML with rewritten ``href``/``src`` attributes.
    """
    normalized = current_path.lstrip("/")
    base_dir = posixpath.dirname(normalized)
    if policy is LinkPolicy.HOP_COUNT:
        hops = "../" * document_depth(normalized)

        def _hop(name: str, value: str) -> str:
            if name == "href":
                value = _index_alias(base_dir, value)
            if not value.startswith("/") or value.startswith("//"):
                return value
            return f"{hops}{value[1:]}"

        return _rewrite_attributes(html, _hop)

    page = page_path_for(normalized)

    def _root(name: str, value: str) -> str:
        if name == "href":
            value = _index_alias(base_dir, value)
        if not value or value.startswith("/") or is_external(value):
            return value
        if value.startswith("#"):
            return f"{page}{value}" if name == "href" else value
        return _resolve_against(base_dir, value)

    return _rewrite_attributes(html, _root)


__all__ = [
    "LinkPolicy",
    "add_external_targets",
    "autolink_urls",
    "convert_raw_images",
    "document_depth",
    "is_external",
    "normalize_backslashes",
    "output_path_for",
    "page_path_for",
    "resolve_links",
    "rewrite_document_extensions",
    "strip_leading_slash",
]
