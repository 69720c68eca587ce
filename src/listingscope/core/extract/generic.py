"""
Generic listing extraction for pages without a site adapter.

Each field is filled from the best available source, in order:
linked data, social preview tags, DOM selectors, free-text
heuristics. The enrichment pass runs last.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config.models import ExtractionSettings
from ..normalize.canonical import (
    Address,
    Area,
    ExtractionMethod,
    Listing,
    Money,
    RoomInfo,
    Source,
)
from ..normalize.parsing import detect_currency, parse_number, pick_first, to_square_meters
from .document import Document
from .geo import GeoCoordinates, resolve
from .heuristics import enrich, infer_transaction_type
from .images import Measurer, extract_property_images
from .structured import (
    extract_jsonld,
    extract_open_graph,
    extract_open_graph_images,
    extract_twitter,
    find_listing_node,
)

logger = logging.getLogger(__name__)


PRICE_QUERIES = [("css", '[itemprop="price"]'), ("data-testid", "price")]
AREA_QUERIES = [("css", '[itemprop="floorSize"]'), ("data-testid", "area"), ("class", "area")]
ROOMS_QUERIES = [("css", '[itemprop="numberOfRooms"]'), ("data-testid", "rooms")]
BEDROOMS_QUERIES = [("css", '[itemprop="numberOfBedrooms"]'), ("data-testid", "bedroom")]
BATHROOMS_QUERIES = [("itemprop", "bathroom"), ("data-testid", "bath")]


def _get(node: dict[str, Any] | None, *path: str) -> Any:
    """Nested lookup that tolerates missing or non-dict levels."""
    current: Any = node
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _dom_number(doc: Document, queries: list[tuple[str, str]]) -> float | None:
    return parse_number(Document.element_text(doc.first_match(queries)))


def _schema_type(node: dict[str, Any] | None) -> str | None:
    declared = _get(node, "@type")
    if isinstance(declared, list):
        declared = declared[0] if declared else None
    return _text(declared)


def build_address(
    node: dict[str, Any] | None,
    doc: Document,
    geo: GeoCoordinates | None,
) -> Address | None:
    """Address from the listing node, falling back to coordinates only."""
    raw = _get(node, "address") or _get(node, "object", "address")
    latitude = geo.latitude if geo else None
    longitude = geo.longitude if geo else None

    if isinstance(raw, str) and raw.strip():
        return Address(formatted=raw.strip(), latitude=latitude, longitude=longitude)

    if isinstance(raw, dict):
        country = raw.get("addressCountry")
        if isinstance(country, dict):
            country = country.get("name")
        street = _text(raw.get("streetAddress"))
        return Address(
            country=_text(country),
            region=_text(raw.get("addressRegion")),
            city=_text(raw.get("addressLocality")),
            street=street,
            postal_code=_text(raw.get("postalCode")),
            formatted=street or Document.element_text(doc.css_first('[itemprop="address"]')),
            latitude=latitude,
            longitude=longitude,
        )

    if geo:
        return Address(latitude=latitude, longitude=longitude)

    return None


async def parse_generic(
    doc: Document,
    *,
    settings: ExtractionSettings | None = None,
    measurer: Measurer | None = None,
) -> Listing:
    """Best-effort listing from any page.

    Args:
        doc: Parsed document
        settings: Extraction thresholds
        measurer: Image measurer passed to the image scorer

    Returns:
        Listing with whatever fields could be found
    """
    settings = settings or ExtractionSettings()

    nodes = extract_jsonld(doc)
    og = extract_open_graph(doc)
    twitter = extract_twitter(doc)

    node = find_listing_node(nodes)
    raw = node if node is not None else (nodes[0] if nodes else None)

    title = pick_first(
        _text(_get(node, "name")),
        og.get("og:title"),
        doc.meta("title"),
        Document.element_text(doc.css_first("h1")),
    )

    description = pick_first(
        _text(_get(node, "description")),
        og.get("og:description"),
        doc.meta("description"),
        twitter.get("twitter:description"),
    )

    node_currency = pick_first(
        _text(_get(node, "priceCurrency")),
        _text(_get(node, "priceSpecification", "priceCurrency")),
    )
    node_price = pick_first(_get(node, "price"), _get(node, "priceSpecification", "price"))

    detected_currency = pick_first(
        detect_currency(f"{node_currency or ''} {_text(node_price) or ''}"),
        detect_currency(og.get("og:price:amount")),
        detect_currency(description),
        detect_currency(title),
    )

    price_amount = pick_first(
        parse_number(_get(node, "price")),
        parse_number(_get(node, "priceSpecification", "price")),
        parse_number(og.get("og:price:amount")),
        _dom_number(doc, PRICE_QUERIES),
    )
    price_currency = pick_first(node_currency, detected_currency)
    price = Money(amount=price_amount, currency=price_currency) if price_amount is not None else None

    area_value = pick_first(
        parse_number(_get(node, "floorSize", "value")),
        parse_number(_get(node, "area")),
        _dom_number(doc, AREA_QUERIES),
    )
    area_unit = pick_first(
        _text(_get(node, "floorSize", "unitText")),
        _text(_get(node, "floorSize", "unitCode")),
        "m2",
    )
    area_value, area_unit = to_square_meters(area_value, area_unit)
    area = Area(value=area_value, unit=area_unit) if area_value is not None else None

    price_per_area = None
    if price_amount is not None and area_value is not None and area_value > 0:
        price_per_area = Money(amount=round(price_amount / area_value), currency=price_currency)

    rooms = RoomInfo(
        rooms=pick_first(parse_number(_get(node, "numberOfRooms")), _dom_number(doc, ROOMS_QUERIES)),
        bedrooms=pick_first(parse_number(_get(node, "numberOfBedrooms")), _dom_number(doc, BEDROOMS_QUERIES)),
        bathrooms=pick_first(
            parse_number(_get(node, "numberOfBathroomsTotal")),
            _dom_number(doc, BATHROOMS_QUERIES),
        ),
    )

    geo = resolve(node, doc)
    address = build_address(node, doc, geo)

    property_type = pick_first(
        _schema_type(node),
        _schema_type(_get(node, "itemOffered")),
        doc.meta("og:type"),
    )

    scored_images = await extract_property_images(doc, nodes, settings=settings, measurer=measurer)
    images = scored_images + [
        url for url in extract_open_graph_images(doc) if url not in scored_images
    ]

    transaction_type = pick_first(
        infer_transaction_type(_text(_get(node, "name"))),
        infer_transaction_type(description),
        infer_transaction_type(title),
    )

    listing = Listing(
        url=doc.url,
        title=title,
        description=description,
        price=price,
        price_per_area=price_per_area,
        area=area,
        rooms=None if rooms.is_empty else rooms,
        address=address,
        images=images or None,
        property_type=property_type,
        transaction_type=transaction_type,
        source=Source.now(
            doc.hostname,
            ExtractionMethod.JSONLD if raw is not None else ExtractionMethod.HYBRID,
        ),
        raw=raw,
    )

    logger.debug(
        f"Generic extraction for {doc.hostname}: "
        f"node={'yes' if node is not None else 'no'}, images={len(images)}"
    )

    return enrich(listing, doc, settings)
