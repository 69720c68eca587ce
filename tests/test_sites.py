"""Tests for the site adapters."""

from __future__ import annotations

import asyncio

from listingscope.core.extract.document import Document
from listingscope.core.normalize.canonical import ExtractionMethod, Money
from listingscope.core.orchestrator import ExtractionPipeline
from listingscope.core.sites.zillow import ZILLOW, map_property

from conftest import zillow_html


PROPERTY = {
    "streetAddress": "123 Main St",
    "city": "Seattle",
    "state": "WA",
    "zipcode": "98101",
    "price": 750000,
    "images": [
        {"url": "https://photos.zillowstatic.com/a.jpg"},
        "https://photos.zillowstatic.com/b.jpg",
        {"url": "https://photos.zillowstatic.com/a.jpg"},
    ],
}

URL = "https://www.zillow.com/homedetails/123-Main-St/1_zpid/"


class TestZillow:
    def test_maps_embedded_property(self):
        doc = Document.from_html(zillow_html(PROPERTY, body="<p>$750,000</p>"), URL)
        listing = map_property(PROPERTY, doc)

        assert listing.title == "123 Main St"
        assert listing.price == Money(amount=750000.0, currency="USD")
        assert listing.address.city == "Seattle"
        assert listing.address.region == "WA"
        assert listing.address.postal_code == "98101"
        assert listing.address.formatted == "123 Main St, Seattle, WA 98101"
        assert listing.images == [
            "https://photos.zillowstatic.com/a.jpg",
            "https://photos.zillowstatic.com/b.jpg",
        ]

    def test_home_info_fallback(self):
        payload = {"hdpData": {"homeInfo": {"streetAddress": "9 Pine Rd", "city": "Austin"}}, "unformattedPrice": "415000"}
        doc = Document.from_html(zillow_html(payload), URL)
        listing = map_property(payload, doc)

        assert listing.title == "9 Pine Rd"
        assert listing.address.city == "Austin"
        assert listing.price.amount == 415000.0

    def test_pipeline_uses_adapter(self, offline_settings):
        html = zillow_html(PROPERTY, body="<p>$750,000</p>")
        listing = asyncio.run(ExtractionPipeline(settings=offline_settings).extract(html, URL))

        assert listing.title == "123 Main St"
        assert listing.source.method is ExtractionMethod.DOM
        assert listing.source.domain == "www.zillow.com"
        assert listing.url == URL

    def test_delegates_without_embedded_state(self, offer_html, offline_settings):
        doc = Document.from_html(offer_html, URL)
        listing = asyncio.run(ZILLOW.parse(doc, settings=offline_settings, measurer=None))

        assert listing.title == "Bright flat"
        assert listing.price == Money(amount=250000.0, currency="USD")

    def test_pattern(self):
        assert ZILLOW.test("www.zillow.com")
        assert not ZILLOW.test("zillow.co")
