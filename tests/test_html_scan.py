"""Tests for the exclusion-aware HTML text scanner."""

from __future__ import annotations

from guidebook.html_scan import ElementStack, rewrite_text, split_markup


def test_split_markup_covers_input() -> None:
    """Tags, comments and text come back in order and rejoin losslessly."""
    html = "<p>a<!-- c --><br/>b</p>"
    chunks = list(split_markup(html))
    assert chunks == [
        (True, "<p>"),
        (False, "a"),
        (True, "<!-- c -->"),
        (True, "<br/>"),
        (False, "b"),
        (True, "</p>"),
    ]
    assert "".join(chunk for _, chunk in chunks) == html


def test_void_and_self_closing_elements_do_not_open() -> None:
    """``<img>`` and ``<x/>`` never push onto the stack."""
    stack = ElementStack(excluded_tags=frozenset({"code"}))
    for tag in ("<code>", "<img src='a'>", "<span/>", "</code>"):
        stack.feed(tag)
    assert not stack.excluded


def test_unclosed_inner_elements_are_popped_with_outer() -> None:
    """Closing an outer element also closes unclosed children."""
    stack = ElementStack(excluded_tags=frozenset({"pre"}))
    for tag in ("<pre>", "<span>", "</pre>"):
        stack.feed(tag)
    assert not stack.excluded


def test_rewrite_text_respects_classes() -> None:
    """Text inside an excluded class is passed through."""
    stack = ElementStack(
        excluded_tags=frozenset(), excluded_classes=frozenset({"keep"})
    )
    html = "<p>x <em class='keep'>x</em> x</p>"
    assert rewrite_text(html, stack, str.upper) == "<p>X <em class='keep'>x</em> X</p>"
