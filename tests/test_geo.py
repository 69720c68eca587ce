"""Tests for geolocation resolution."""

from __future__ import annotations

import pytest

from listingscope.core.extract.document import Document
from listingscope.core.extract.geo import (
    GeoCoordinates,
    from_scripts,
    from_structured,
    from_text,
    is_valid_coordinate,
    resolve,
)


@pytest.mark.parametrize(
    "lat, lng, expected",
    [
        (0, 0, False),
        (91, 10, False),
        (10, 181, False),
        (43.6, 39.7, True),
        ("43.601958", "39.717169", True),
        (None, 10, False),
        ("north", 10, False),
        (float("nan"), 10, False),
    ],
)
def test_is_valid_coordinate(lat, lng, expected):
    assert is_valid_coordinate(lat, lng) is expected


class TestStrategies:
    def test_structured_geo(self):
        node = {"geo": {"latitude": "48.8566", "longitude": "2.3522"}}
        assert from_structured(node) == GeoCoordinates(48.8566, 2.3522)

    def test_structured_address_geo(self):
        node = {"address": {"geo": {"latitude": 40.4168, "longitude": -3.7038}}}
        assert from_structured(node) == GeoCoordinates(40.4168, -3.7038)

    def test_structured_placeholder_rejected(self):
        assert from_structured({"geo": {"latitude": 0, "longitude": 0}}) is None

    def test_text_pair(self):
        found = from_text("Location: 43.601958, 39.717169 (city centre)")
        assert found == GeoCoordinates(43.601958, 39.717169)

    def test_text_without_precision_is_ignored(self):
        assert from_text("Rooms 3, 4") is None

    def test_scripts(self):
        scripts = ['window.map = {"lat": 55.75222, "lng": 37.61556};']
        assert from_scripts(scripts) == GeoCoordinates(55.75222, 37.61556)


class TestResolve:
    def test_structured_wins_over_markup(self):
        doc = Document.from_html(
            '<div data-lat="1.5000" data-lng="2.5000"></div>',
            "https://example.com/",
        )
        node = {"geo": {"latitude": 10.5, "longitude": 20.5}}
        assert resolve(node, doc) == GeoCoordinates(10.5, 20.5)

    def test_data_attributes(self):
        doc = Document.from_html(
            '<div id="map" data-lat="52.5200" data-lng="13.4050"></div>',
            "https://example.com/",
        )
        assert resolve(None, doc) == GeoCoordinates(52.52, 13.405)

    def test_meta_tags(self):
        doc = Document.from_html(
            '<html><head><meta property="place:location:latitude" content="41.3874">'
            '<meta property="place:location:longitude" content="2.1686"></head><body></body></html>',
            "https://example.com/",
        )
        assert resolve(None, doc) == GeoCoordinates(41.3874, 2.1686)

    def test_nothing_found(self):
        doc = Document.from_html("<p>No map here</p>", "https://example.com/")
        assert resolve(None, doc) is None
