"""
Page slimming for the remote extraction service.

Strips markup that carries no listing data (scripts, styling, chrome,
tracking attributes) so the page fits the service's request size limit.
"""

from __future__ import annotations

import re

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

from listingscope.core.extract.base import DocumentError

REMOVE_SELECTORS = (
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "canvas",
    "audio",
    "video",
    "embed",
    "object",
    "link[rel='stylesheet']",
    "link[rel='preload']",
    "link[rel='prefetch']",
    "meta",
)

REMOVE_ATTRIBUTES = frozenset({
    "style",
    "onclick",
    "onload",
    "onerror",
    "onmouseover",
    "onmouseout",
    "onfocus",
    "onblur",
    "class",
    "id",
    "aria-label",
    "aria-hidden",
    "role",
})

KEEP_ATTRIBUTES = frozenset({
    "href",
    "src",
    "alt",
    "title",
    "content",
    "property",
    "name",
    "itemprop",
    "itemtype",
    "itemscope",
    "data-price",
    "data-area",
    "data-address",
})

NAVIGATION_SELECTORS = (
    "nav",
    "header:not([itemscope])",
    "footer",
    "[role='navigation']",
    "[role='banner']",
    "[role='contentinfo']",
    ".navbar",
    ".navigation",
    ".menu",
    ".header",
    ".footer",
    ".sidebar",
    ".advertisement",
    ".ad",
    ".cookie",
    ".popup",
    ".modal",
)

_WHITESPACE_RE = re.compile(r"\s+")
_BETWEEN_TAGS_RE = re.compile(r">\s+<")


def _holds_listing_microdata(element: HtmlElement) -> bool:
    return bool(
        element.xpath(
            ".//*[@itemscope and contains(translate(@itemtype, 'REALSTATE', 'realstate'), 'realestate')]"
        )
    )


def _remove(element: HtmlElement) -> None:
    if element.getparent() is not None:
        element.drop_tree()


def _remove_navigation(root: HtmlElement) -> None:
    for selector in NAVIGATION_SELECTORS:
        for element in root.cssselect(selector):
            if not _holds_listing_microdata(element):
                _remove(element)


def _clean_attributes(root: HtmlElement) -> None:
    for element in root.iter(etree.Element):
        for name in list(element.attrib):
            if name in KEEP_ATTRIBUTES:
                continue
            if name in REMOVE_ATTRIBUTES or name.startswith("data-"):
                del element.attrib[name]


def _remove_empty(root: HtmlElement) -> None:
    # Document order, so a parent is judged before its children go
    for element in list(root.iter(etree.Element)):
        if element is root or len(element):
            continue
        if (element.text_content() or "").strip():
            continue
        if any(attr in element.attrib for attr in KEEP_ATTRIBUTES):
            continue
        _remove(element)


def _compact_text(root: HtmlElement) -> None:
    for element in root.iter():
        if element.text:
            element.text = _WHITESPACE_RE.sub(" ", element.text)
        if element.tail:
            element.tail = _WHITESPACE_RE.sub(" ", element.tail)


def preprocess_html(html: str | bytes) -> str:
    """Return the page body's inner HTML without non-content markup.

    Raises:
        DocumentError: If the page cannot be parsed
    """
    if not html or not html.strip():
        raise DocumentError("Empty document")

    try:
        root = lxml_html.document_fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise DocumentError(f"Unparseable document: {e}") from e

    for selector in REMOVE_SELECTORS:
        for element in root.cssselect(selector):
            _remove(element)

    for comment in list(root.iter(etree.Comment)):
        _remove(comment)

    # Navigation is matched by class and role, so it goes before attribute cleanup
    _remove_navigation(root)
    _clean_attributes(root)
    _remove_empty(root)
    _compact_text(root)

    body = root.find("body")
    if body is None:
        return ""

    parts = [body.text or ""]
    parts.extend(lxml_html.tostring(child, encoding="unicode") for child in body)
    cleaned = "".join(parts)

    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    cleaned = _BETWEEN_TAGS_RE.sub("><", cleaned)
    return cleaned.strip()


def html_size(html: str) -> int:
    """Size of the HTML in UTF-8 bytes."""
    return len(html.encode("utf-8"))


def format_size(size: int) -> str:
    """Human-readable byte count."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
