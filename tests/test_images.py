"""Tests for image candidate extraction and scoring."""

from __future__ import annotations

import asyncio
import io

import httpx
import pytest
from PIL import Image

from listingscope.core.config.models import ExtractionSettings
from listingscope.core.extract.document import Document
from listingscope.core.extract.images import (
    ImageMeasurer,
    declared_size,
    extract_property_images,
    find_galleries,
    image_url,
    is_excluded_url,
    scan_dom_images,
    score_image,
)

from conftest import FakeMeasurer


def _img(html: str):
    return Document.from_html(html, "https://example.com/").css_first("img")


class TestScoreImage:
    def test_small_images_rejected(self):
        assert score_image("https://example.com/photo.jpg", 200, 600) is None
        assert score_image("https://example.com/photo.jpg", 600, 299) is None

    def test_suspicious_keyword_rejected_despite_high_score(self):
        assert (
            score_image(
                "https://example.com/logo-large.jpg",
                1200,
                800,
                class_name="gallery photo",
                alt="property photo",
                in_gallery=True,
            )
            is None
        )

    def test_base_score(self):
        # 100 - 300/10 for size, +20 aspect ratio, +10 non-generic URL
        assert score_image("https://cdn.example.com/photos/1.jpg", 800, 500) == pytest.approx(100.0)

    def test_gallery_bonus(self):
        url = "https://cdn.example.com/photos/1.jpg"
        plain = score_image(url, 1000, 700)
        in_gallery = score_image(url, 1000, 700, in_gallery=True)
        assert in_gallery - plain == pytest.approx(20.0)

    def test_class_and_alt_bonuses(self):
        url = "https://cdn.example.com/photos/1.jpg"
        plain = score_image(url, 1000, 700)
        boosted = score_image(url, 1000, 700, class_name="listing-photo", alt="Kitchen")
        assert boosted - plain == pytest.approx(25.0)

    def test_thresholds_come_from_settings(self):
        settings = ExtractionSettings(min_image_size=100, ideal_image_size=200)
        assert score_image("https://cdn.example.com/p.jpg", 200, 150, settings=settings) is not None


class TestExcludedUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/logo.png",
            "https://example.com/img/icon-home.png",
            "https://example.com/ads/house.jpg",
            "https://example.com/ad-banner.jpg",
            "https://example.com/pic.svg",
            "https://example.com/anim.gif?x=1",
        ],
    )
    def test_excluded(self, url):
        assert is_excluded_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/upload/house.jpg",
            "https://example.com/header-photo.jpg",
            "https://example.com/photos/1.jpg",
        ],
    )
    def test_allowed(self, url):
        assert not is_excluded_url(url)


class TestImageElements:
    def test_lazy_attribute_wins(self):
        img = _img('<img src="/placeholder.png" data-src="/photos/big.jpg">')
        assert image_url(img, "https://example.com/") == "https://example.com/photos/big.jpg"

    def test_largest_srcset_entry(self):
        img = _img('<img srcset="/s.jpg 320w, /l.jpg 1024w, /m.jpg 640w" src="/fallback.jpg">')
        assert image_url(img, "https://example.com/") == "https://example.com/l.jpg"

    def test_data_uri_skipped(self):
        assert image_url(_img('<img src="data:image/gif;base64,R0lGOD">'), "https://example.com/") is None

    def test_declared_size_from_attributes(self):
        assert declared_size(_img('<img src="/a.jpg" width="800" height="600">')) == (800, 600)

    def test_declared_size_from_style(self):
        assert declared_size(_img('<img src="/a.jpg" style="width: 640px; height: 480px">')) == (640, 480)

    def test_no_declared_size(self):
        assert declared_size(_img('<img src="/a.jpg" width="100%">')) is None


class TestGalleries:
    def test_gallery_by_class(self):
        doc = Document.from_html(
            '<div class="Photo-Gallery"><img src="/1.jpg"><img src="/2.jpg"><img src="/3.jpg"></div>'
            '<div class="slider"><img src="/4.jpg"></div>',
            "https://example.com/",
        )
        galleries = find_galleries(doc)
        assert len(galleries) == 1
        assert galleries[0].get("class") == "Photo-Gallery"

    def test_container_fallback(self):
        images = "".join(f'<span><img src="/{i}.jpg"></span>' for i in range(5))
        doc = Document.from_html(f'<section id="main">{images}</section>', "https://example.com/")
        assert [g.get("id") for g in find_galleries(doc)] == ["main"]


GALLERY_PAGE = """
<html><head>
  <script type="application/ld+json">
  {"@type": "House", "image": ["https://example.com/ld/1.jpg", {"url": "https://example.com/ld/2.jpg"}]}
  </script>
</head><body>
  <img src="/static/logo.png" width="1200" height="800">
  <div class="gallery">
    <img src="/photos/1.jpg">
    <img src="/photos/2.jpg">
    <img src="/photos/3.jpg">
  </div>
  <img src="/photos/tiny.jpg" width="120" height="90">
</body></html>
"""


class TestExtractPropertyImages:
    def test_measures_scores_and_orders(self):
        measurer = FakeMeasurer(default=(1200, 800))
        doc = Document.from_html(GALLERY_PAGE, "https://example.com/listing/1")

        urls = asyncio.run(extract_property_images(doc, measurer=measurer))

        assert urls[:3] == [
            "https://example.com/photos/1.jpg",
            "https://example.com/photos/2.jpg",
            "https://example.com/photos/3.jpg",
        ]
        assert urls[3:] == ["https://example.com/ld/1.jpg", "https://example.com/ld/2.jpg"]
        # Excluded and pre-sized images are never downloaded
        assert sorted(measurer.calls) == urls[:3]

    def test_failed_measurements_are_skipped(self):
        async def broken(url: str):
            raise RuntimeError("boom")

        doc = Document.from_html(GALLERY_PAGE, "https://example.com/listing/1")
        urls = asyncio.run(extract_property_images(doc, measurer=broken))
        assert urls == ["https://example.com/ld/1.jpg", "https://example.com/ld/2.jpg"]

    def test_measurement_disabled(self):
        doc = Document.from_html(GALLERY_PAGE, "https://example.com/listing/1")
        settings = ExtractionSettings(measure_images=False)
        measurer = FakeMeasurer(default=(1200, 800))

        urls = asyncio.run(extract_property_images(doc, settings=settings, measurer=measurer))

        assert measurer.calls == []
        assert "https://example.com/photos/1.jpg" not in urls

    def test_max_images(self):
        doc = Document.from_html(GALLERY_PAGE, "https://example.com/listing/1")
        settings = ExtractionSettings(max_images=2)
        urls = asyncio.run(extract_property_images(doc, settings=settings, measurer=FakeMeasurer(default=(1200, 800))))
        assert len(urls) == 2


class TestImageMeasurer:
    @staticmethod
    def _png(width: int, height: int) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", (width, height)).save(buffer, format="PNG")
        return buffer.getvalue()

    def test_reads_pixel_size(self):
        png = self._png(640, 480)

        async def run():
            client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=png)))
            async with client, ImageMeasurer(timeout=1.0, client=client) as measurer:
                return await measurer("https://example.com/a.png")

        assert asyncio.run(run()) == (640, 480)

    def test_timeout_yields_none(self):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, content=b"")

        async def run():
            client = httpx.AsyncClient(transport=httpx.MockTransport(slow))
            async with client, ImageMeasurer(timeout=0.05, client=client) as measurer:
                return await measurer("https://example.com/slow.jpg")

        assert asyncio.run(run()) is None

    def test_not_an_image_yields_none(self):
        async def run():
            client = httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html></html>"))
            )
            async with client, ImageMeasurer(timeout=1.0, client=client) as measurer:
                return await measurer("https://example.com/page")

        assert asyncio.run(run()) is None

    def test_used_outside_context_raises(self):
        with pytest.raises(RuntimeError):
            asyncio.run(ImageMeasurer()("https://example.com/a.png"))


def test_scan_dom_images():
    doc = Document.from_html(
        '<img src="/a.jpg" srcset="/a.jpg 1x, /a2.jpg 2x"><img src="data:image/png;base64,AA"><img src="/b.jpg">',
        "https://example.com/",
    )
    assert scan_dom_images(doc, limit=2) == ["https://example.com/a.jpg", "https://example.com/a2.jpg"]
