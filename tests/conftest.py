"""Shared fixtures for the ListingScope test suite."""

from __future__ import annotations

import json

import pytest

from listingscope.core.config.models import ExtractionSettings


OFFER_HTML = """
<html>
<head>
  <title>Bright flat | Example Realty</title>
  <script type="application/ld+json">
  {
    "@context": "https://schema.org",
    "@type": "Offer",
    "name": "Bright flat",
    "price": "250000",
    "priceCurrency": "USD",
    "floorSize": {"@type": "QuantitativeValue", "value": 80, "unitText": "m2"}
  }
  </script>
</head>
<body>
  <h1>Bright flat</h1>
</body>
</html>
"""


def zillow_html(property_payload: dict, *, body: str = "") -> str:
    """A Zillow-like page embedding ``property_payload`` in __NEXT_DATA__."""
    cache = json.dumps({"ForSaleShopperPlatformFullRenderQuery{}": {"property": property_payload}})
    next_data = {"props": {"pageProps": {"componentData": {"gdpClientCache": cache}}}}
    return (
        "<html><head><title>Zillow</title>"
        f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(next_data)}</script>'
        f"</head><body>{body}</body></html>"
    )


class FakeMeasurer:
    """Records measured URLs and answers from a fixed table."""

    def __init__(self, sizes: dict[str, tuple[int, int]] | None = None, default: tuple[int, int] | None = None):
        self.sizes = sizes or {}
        self.default = default
        self.calls: list[str] = []

    async def __call__(self, url: str) -> tuple[int, int] | None:
        self.calls.append(url)
        return self.sizes.get(url, self.default)


@pytest.fixture
def offer_html() -> str:
    return OFFER_HTML


@pytest.fixture
def offline_settings() -> ExtractionSettings:
    """Settings that never download images."""
    return ExtractionSettings(measure_images=False)


@pytest.fixture
def fake_measurer() -> FakeMeasurer:
    return FakeMeasurer(default=(1200, 800))
