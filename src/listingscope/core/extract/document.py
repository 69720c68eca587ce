"""
Parsed document access for the extractors.

Wraps an lxml tree with the page URL, a resolved base URL and an
approximation of the browser's visible text.
"""

from __future__ import annotations

import re
from functools import cached_property
from urllib.parse import urljoin, urlparse

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

from ..normalize.parsing import normalize_whitespace
from .base import DocumentError


# Elements whose text never renders
HIDDEN_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title"})

# Elements that start a new line in rendered text
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
    "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
    "table", "td", "th", "tr", "ul",
})

_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_LOWER = "abcdefghijklmnopqrstuvwxyz"

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


def _xpath_literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"


def visible_text(element: HtmlElement) -> str:
    """Approximate ``innerText`` for an element (hidden tags skipped)."""
    parts: list[str] = []

    def walk(node: HtmlElement) -> None:
        tag = node.tag if isinstance(node.tag, str) else None
        if tag is not None and tag not in HIDDEN_TAGS:
            if tag in BLOCK_TAGS:
                parts.append("\n")
            if node.text:
                parts.append(node.text)
            for child in node:
                walk(child)
            if tag in BLOCK_TAGS:
                parts.append("\n")
        if node.tail:
            parts.append(node.tail)

    if element.text and element.tag not in HIDDEN_TAGS:
        parts.append(element.text)
    for child in element:
        walk(child)

    lines = (" ".join(line.split()) for line in "".join(parts).splitlines())
    return "\n".join(line for line in lines if line)


class Document:
    """A parsed HTML page plus its originating URL."""

    def __init__(self, root: HtmlElement, url: str, base_url: str | None = None):
        self.root = root
        self.url = url
        self.base_url = base_url or self._resolve_base(root, url)

    @classmethod
    def from_html(cls, html: str | bytes, url: str, base_url: str | None = None) -> "Document":
        """Parse HTML text.

        Raises:
            DocumentError: If the HTML is empty or cannot be parsed
        """
        if not isinstance(html, (str, bytes)):
            raise DocumentError(f"Unsupported document type: {type(html).__name__}", url=url)
        if not html.strip():
            raise DocumentError("Empty document", url=url)

        if isinstance(html, str):
            # lxml rejects str input that carries an encoding declaration
            html = _XML_DECLARATION_RE.sub("", html, count=1)

        try:
            root = lxml_html.document_fromstring(html)
        except (etree.ParserError, ValueError) as e:
            raise DocumentError(f"HTML parse error: {e}", url=url) from e

        return cls(root, url, base_url)

    @staticmethod
    def _resolve_base(root: HtmlElement, url: str) -> str:
        base = root.find(".//base[@href]")
        if base is not None:
            return urljoin(url, base.get("href", "").strip())
        return url

    # -------------------------------------------------------------------------
    # Location
    # -------------------------------------------------------------------------

    @property
    def hostname(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def css(self, selector: str) -> list[HtmlElement]:
        return self.root.cssselect(selector)

    def css_first(self, selector: str) -> HtmlElement | None:
        found = self.root.cssselect(selector)
        return found[0] if found else None

    def attr_contains(self, attr: str, needle: str, tag: str = "*") -> list[HtmlElement]:
        """Elements whose attribute contains ``needle``, case-insensitively."""
        expr = (
            f"//{tag}[contains(translate(@{attr}, '{_UPPER}', '{_LOWER}'), "
            f"{_xpath_literal(needle.lower())})]"
        )
        return self.root.xpath(expr)

    def first_match(self, queries: list[tuple[str, str]]) -> HtmlElement | None:
        """First element in document order matching any query.

        Each query is ``("css", selector)`` or ``(attr, needle)`` for a
        case-insensitive attribute match.
        """
        matched: set[HtmlElement] = set()
        for kind, value in queries:
            if kind == "css":
                matched.update(self.css(value))
            else:
                matched.update(self.attr_contains(kind, value))
        if not matched:
            return None
        for element in self.root.iter():
            if element in matched:
                return element
        return None

    def meta(self, name: str) -> str | None:
        """Content of ``meta[name=...]`` or ``meta[property=...]``."""
        for attr in ("name", "property"):
            for element in self.root.xpath(f"//meta[@{attr}={_xpath_literal(name)}]"):
                content = element.get("content")
                if content:
                    return content
        return None

    def inline_scripts(self) -> list[str]:
        return [s.text_content() for s in self.root.xpath("//script[not(@src)]")]

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    @cached_property
    def body_text(self) -> str:
        body = self.root.find("body")
        if body is None:
            body = self.root
        return visible_text(body)

    @property
    def title(self) -> str | None:
        element = self.root.find(".//title")
        return normalize_whitespace(element.text_content()) if element is not None else None

    @staticmethod
    def element_text(element: HtmlElement | None) -> str | None:
        if element is None:
            return None
        return normalize_whitespace(visible_text(element))
