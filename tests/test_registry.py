"""Tests for adapter routing, fallback and provenance stamping."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from listingscope.core.extract.base import DocumentError
from listingscope.core.normalize.canonical import Area, ExtractionMethod, Listing, Money
from listingscope.core.orchestrator import ExtractionPipeline, extract_listing
from listingscope.core.sites import SITE_ADAPTERS, SiteAdapter, hostname_pattern


async def _failing_parse(doc, *, settings, measurer):
    raise RuntimeError("site changed its markup")


async def _fixed_parse(doc, *, settings, measurer):
    return Listing(
        url="https://adapter.example/should-be-replaced",
        title="From adapter",
        price=Money(amount=10.0, currency="EUR"),
    )


FAILING = SiteAdapter(name="failing", pattern=hostname_pattern(r"example\.com"), parse=_failing_parse)
FIXED = SiteAdapter(name="fixed", pattern=hostname_pattern(r"example\.com"), parse=_fixed_parse)


def _without_timestamp(listing: Listing) -> Listing:
    return replace(listing, source=replace(listing.source, extracted_at=""))


class TestAdapterSelection:
    @pytest.mark.parametrize(
        "hostname, expected",
        [
            ("www.zillow.com", "zillow"),
            ("zillow.com", "zillow"),
            ("www.realtor.com", "realtor"),
            ("www.realtor.ca", "realtor"),
            ("www.rightmove.co.uk", "rightmove"),
            ("www.idealista.pt", "idealista"),
            ("www.immobilienscout24.de", "immoscout24"),
            ("www.immoscout24.ch", "immoscout24"),
        ],
    )
    def test_known_sites(self, hostname, expected):
        assert ExtractionPipeline().find_adapter(hostname).name == expected

    @pytest.mark.parametrize("hostname", ["example.com", "notzillow.com", "zillow.com.evil.net", ""])
    def test_unknown_sites(self, hostname):
        assert ExtractionPipeline().find_adapter(hostname) is None

    def test_adapter_order(self):
        assert [a.name for a in SITE_ADAPTERS] == ["zillow", "realtor", "rightmove", "idealista", "immoscout24"]


class TestExtract:
    URL = "https://www.example.com/listing/1"

    def test_generic_when_no_adapter_matches(self, offer_html, offline_settings):
        pipeline = ExtractionPipeline(settings=offline_settings, adapters=())
        listing = asyncio.run(pipeline.extract(offer_html, self.URL))

        assert listing.url == self.URL
        assert listing.price == Money(amount=250000.0, currency="USD")
        assert listing.source.domain == "www.example.com"
        assert listing.source.method is ExtractionMethod.JSONLD

    def test_failing_adapter_falls_back_to_generic(self, offer_html, offline_settings):
        generic = asyncio.run(ExtractionPipeline(settings=offline_settings, adapters=()).extract(offer_html, self.URL))
        fallback = asyncio.run(
            ExtractionPipeline(settings=offline_settings, adapters=(FAILING, FIXED)).extract(offer_html, self.URL)
        )

        # The next adapter is not tried
        assert fallback.title != "From adapter"
        assert _without_timestamp(fallback) == _without_timestamp(generic)

    def test_adapter_result_is_stamped_and_enriched(self, offline_settings):
        html = "<html><head><title>Page</title></head><body><h1>Flat for rent</h1></body></html>"
        pipeline = ExtractionPipeline(settings=offline_settings, adapters=(FIXED,))

        listing = asyncio.run(pipeline.extract(html, self.URL))

        assert listing.title == "From adapter"
        assert listing.url == self.URL
        assert listing.source.method is ExtractionMethod.DOM
        assert listing.source.domain == "www.example.com"
        assert listing.transaction_type == "rent"

    def test_unparseable_document_is_raised(self, offline_settings):
        with pytest.raises(DocumentError):
            asyncio.run(ExtractionPipeline(settings=offline_settings).extract("   ", self.URL))

    def test_page_with_xml_declaration(self, offline_settings):
        html = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<html><head><title>Flat</title></head><body><h1>Flat</h1><p>80 m2</p></body></html>"
        )
        listing = asyncio.run(ExtractionPipeline(settings=offline_settings, adapters=()).extract(html, self.URL))

        assert listing.title == "Flat"
        assert listing.area == Area(value=80.0, unit="m2")

    def test_extract_listing_wrapper(self, offer_html, offline_settings):
        listing = asyncio.run(extract_listing(offer_html, self.URL, settings=offline_settings))
        assert listing.title == "Bright flat"


class TestStampRemote:
    def test_payload_is_stamped_as_hybrid(self):
        listing = ExtractionPipeline().stamp_remote(
            {
                "url": "https://elsewhere.example/",
                "title": "AI title",
                "source": {"domain": "ignored", "method": "dom"},
            },
            "https://www.example.com/ad/9",
        )

        assert listing.title == "AI title"
        assert listing.url == "https://www.example.com/ad/9"
        assert listing.source.method is ExtractionMethod.HYBRID
        assert listing.source.domain == "www.example.com"

    def test_payload_numbers_and_units_normalized(self):
        listing = ExtractionPipeline().stamp_remote(
            {"price": {"amount": "250000"}, "area": {"value": 600, "unit": "sqft"}},
            "https://www.example.com/ad/9",
        )

        assert listing.price.amount == 250000.0
        assert listing.area.unit == "m2"
        assert listing.area.value == pytest.approx(55.74, abs=0.01)

    def test_listing_instance_accepted(self):
        listing = ExtractionPipeline().stamp_remote(Listing(title="x"), "https://example.com/")
        assert listing.source.method is ExtractionMethod.HYBRID
