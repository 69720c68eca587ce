"""
Structured data extractor for JSON-LD and social preview tags.

Extracts listing candidates from:
- JSON-LD schema.org markup
- OpenGraph meta tags (og:*)
- Twitter card meta tags (twitter:*)
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .document import Document

logger = logging.getLogger(__name__)


# Schema.org types that describe a listing or an offer
LISTING_SCHEMA_TYPES = frozenset({
    "Offer",
    "Residence",
    "Apartment",
    "House",
    "SingleFamilyResidence",
    "Product",
    "RealEstateListing",
    "RentAction",
    "BuyAction",
    "SellAction",
})


def extract_jsonld(doc: Document) -> list[Any]:
    """Parse every JSON-LD block in the document.

    Top-level arrays and @graph arrays are flattened. Blocks that
    fail to parse are skipped.
    """
    results: list[Any] = []

    for script in doc.css('script[type="application/ld+json"]'):
        text = script.text_content().strip()
        if not text:
            continue

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            results.append(item)
            if isinstance(item, dict) and isinstance(item.get("@graph"), list):
                results.extend(item["@graph"])

    return results


def _schema_types(node: dict[str, Any]) -> list[str]:
    declared = node.get("@type") or node.get("type")
    if not declared:
        return []
    if isinstance(declared, list):
        return [str(t) for t in declared]
    return [str(declared)]


def find_listing_node(nodes: list[Any]) -> dict[str, Any] | None:
    """Pick the linked-data object that describes the listing.

    The first object whose type is a listing type wins; an object
    exposing ``offers`` yields that offer instead.
    """
    for node in nodes:
        if not isinstance(node, dict):
            continue

        if LISTING_SCHEMA_TYPES.intersection(_schema_types(node)):
            return node

        offers = node.get("offers")
        if isinstance(offers, dict):
            return offers
        if isinstance(offers, list):
            for offer in offers:
                if isinstance(offer, dict):
                    return offer

    return None


def _extract_prefixed(doc: Document, attr: str, prefix: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for element in doc.root.xpath(f"//meta[starts-with(@{attr}, '{prefix}')]"):
        key = element.get(attr)
        content = element.get("content")
        if key and content and key not in data:
            data[key] = content
    return data


def extract_open_graph(doc: Document) -> dict[str, str]:
    """OpenGraph properties keyed by property name."""
    return _extract_prefixed(doc, "property", "og:")


def extract_twitter(doc: Document) -> dict[str, str]:
    """Twitter card values keyed by name."""
    return _extract_prefixed(doc, "name", "twitter:")


def extract_open_graph_images(doc: Document) -> list[str]:
    """All og:image* URLs in document order, deduplicated."""
    images: list[str] = []
    for element in doc.root.xpath("//meta[starts-with(@property, 'og:image')]"):
        prop = element.get("property", "")
        content = element.get("content")
        if not content or prop not in ("og:image", "og:image:url", "og:image:secure_url"):
            continue
        if content not in images:
            images.append(content)
    return images
