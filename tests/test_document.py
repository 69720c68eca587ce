"""Tests for document parsing and queries."""

from __future__ import annotations

import pytest

from listingscope.core.extract.base import DocumentError, ExtractionError
from listingscope.core.extract.document import Document


class TestFromHtml:
    @pytest.mark.parametrize("html", ["", "   \n", b""])
    def test_empty_document(self, html):
        with pytest.raises(DocumentError):
            Document.from_html(html, "https://example.com/")

    def test_unsupported_type(self):
        with pytest.raises(ExtractionError):
            Document.from_html(None, "https://example.com/")  # type: ignore[arg-type]

    def test_base_href(self):
        doc = Document.from_html(
            '<html><head><base href="/listings/"></head><body></body></html>',
            "https://example.com/a/b",
        )
        assert doc.base_url == "https://example.com/listings/"

    def test_explicit_base_url_wins(self):
        doc = Document.from_html("<p>x</p>", "https://example.com/a", base_url="https://cdn.example.com/")
        assert doc.base_url == "https://cdn.example.com/"

    def test_hostname_lowercased(self):
        doc = Document.from_html("<p>x</p>", "https://WWW.Example.COM/path")
        assert doc.hostname == "www.example.com"

    def test_xml_declaration_in_text(self):
        doc = Document.from_html(
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<html><body><h1>Flat</h1><p>80 m2</p></body></html>",
            "https://example.com/",
        )
        assert doc.css_first("h1").text == "Flat"


class TestQueries:
    HTML = """
    <html><head>
      <title> Listing  title </title>
      <meta name="description" content="Meta description">
      <meta property="og:type" content="website">
    </head><body>
      <div class="Price-Box">First</div>
      <span data-testid="listing-price">Second</span>
      <script>var hidden = "not visible";</script>
      <p>Visible <b>text</b></p>
    </body></html>
    """

    def test_attr_contains_is_case_insensitive(self):
        doc = Document.from_html(self.HTML, "https://example.com/")
        assert [el.text for el in doc.attr_contains("class", "price-box")] == ["First"]

    def test_first_match_uses_document_order(self):
        doc = Document.from_html(self.HTML, "https://example.com/")
        element = doc.first_match([("data-testid", "price"), ("class", "price")])
        assert element.text == "First"

    def test_meta_by_name_or_property(self):
        doc = Document.from_html(self.HTML, "https://example.com/")
        assert doc.meta("description") == "Meta description"
        assert doc.meta("og:type") == "website"
        assert doc.meta("missing") is None

    def test_body_text_skips_scripts(self):
        doc = Document.from_html(self.HTML, "https://example.com/")
        assert "Visible text" in doc.body_text
        assert "not visible" not in doc.body_text

    def test_title(self):
        doc = Document.from_html(self.HTML, "https://example.com/")
        assert doc.title == "Listing title"
