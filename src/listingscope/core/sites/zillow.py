"""
Zillow adapter.

Zillow property pages embed their state in the Next.js ``__NEXT_DATA__``
blob; the property record lives in the first entry of
``props.pageProps.componentData.gdpClientCache``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from listingscope.core.config.models import ExtractionSettings
from listingscope.core.extract.document import Document
from listingscope.core.extract.generic import parse_generic
from listingscope.core.extract.images import Measurer
from listingscope.core.normalize.canonical import Address, Listing, Money
from listingscope.core.normalize.parsing import absolute_url, detect_currency, parse_number, pick_first

from .base import SiteAdapter, hostname_pattern

logger = logging.getLogger(__name__)


def _property_payload(doc: Document) -> dict[str, Any] | None:
    script = doc.root.get_element_by_id("__NEXT_DATA__", None)
    if script is None:
        return None

    text = script.text_content().strip()
    if not text:
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Unreadable __NEXT_DATA__ on {doc.url}: {e}")
        return None

    cache = (
        data.get("props", {}).get("pageProps", {}).get("componentData", {}).get("gdpClientCache")
        if isinstance(data, dict)
        else None
    )
    if isinstance(cache, str):
        # Newer pages store the cache as a JSON string
        try:
            cache = json.loads(cache)
        except json.JSONDecodeError:
            return None
    if not isinstance(cache, dict) or not cache:
        return None

    entry = next(iter(cache.values()))
    payload = entry.get("property") if isinstance(entry, dict) else None
    return payload if isinstance(payload, dict) else None


def _images(payload: dict[str, Any], base_url: str) -> list[str] | None:
    raw = payload.get("images")
    if not isinstance(raw, list):
        return None

    images: list[str] = []
    for item in raw:
        url = item if isinstance(item, str) else item.get("url") if isinstance(item, dict) else None
        url = absolute_url(url, base_url)
        if url and url not in images:
            images.append(url)
    return images or None


def map_property(payload: dict[str, Any], doc: Document) -> Listing:
    """Map a Zillow property record onto a listing."""
    hdp_data = payload.get("hdpData")
    home_info = hdp_data.get("homeInfo") if isinstance(hdp_data, dict) else None
    if not isinstance(home_info, dict):
        home_info = {}

    street = pick_first(payload.get("streetAddress"), home_info.get("streetAddress"))
    city = pick_first(payload.get("city"), home_info.get("city"))
    state = pick_first(payload.get("state"), home_info.get("state"))
    zipcode = pick_first(payload.get("zipcode"), home_info.get("zipcode"))

    amount = pick_first(parse_number(payload.get("price")), parse_number(payload.get("unformattedPrice")))
    price = Money(amount=amount, currency=detect_currency(doc.body_text)) if amount is not None else None

    formatted = None
    if street:
        formatted = f"{street}, {city or ''}, {state or ''} {zipcode or ''}".strip()

    return Listing(
        title=pick_first(street, doc.title),
        price=price,
        address=Address(
            city=city,
            region=state,
            postal_code=str(zipcode) if zipcode is not None else None,
            street=street,
            formatted=formatted,
        ),
        images=_images(payload, doc.base_url),
    )


async def parse_zillow(
    doc: Document,
    *,
    settings: ExtractionSettings,
    measurer: Measurer | None,
) -> Listing:
    payload = _property_payload(doc)
    if payload is None:
        return await parse_generic(doc, settings=settings, measurer=measurer)
    return map_property(payload, doc)


ZILLOW = SiteAdapter(
    name="zillow",
    pattern=hostname_pattern(r"zillow\.com"),
    parse=parse_zillow,
)
