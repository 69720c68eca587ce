"""
Geolocation resolution from linked data, markup and page text.

Strategies run in order and the first valid coordinate pair wins:
1. geo object on the listing node (or its nested address)
2. elements carrying data-lat/data-lng style attributes
3. place:location meta tags
4. "43.601958, 39.717169" style pairs in visible text
5. lat/lng assignments inside inline scripts
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from .document import Document


TEXT_PAIR_RE = re.compile(r"(-?\d{1,3}\.\d{4,})\s*,\s*(-?\d{1,3}\.\d{4,})")
SCRIPT_LAT_RE = re.compile(r"\blat(?:itude)?[\"']?\s*[:=]\s*[\"']?(-?\d{1,3}\.\d{4,})", re.IGNORECASE)
SCRIPT_LNG_RE = re.compile(r"\b(?:lng|lon|long|longitude)[\"']?\s*[:=]\s*[\"']?(-?\d{1,3}\.\d{4,})", re.IGNORECASE)

ATTRIBUTE_PAIRS = (
    ("data-lat", "data-lng"),
    ("data-latitude", "data-longitude"),
)


@dataclass(frozen=True)
class GeoCoordinates:
    latitude: float
    longitude: float


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Finite, in range, and not the (0, 0) placeholder."""
    lat_f = _to_float(lat)
    lng_f = _to_float(lng)
    if lat_f is None or lng_f is None:
        return False
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return False
    if not (-90 <= lat_f <= 90 and -180 <= lng_f <= 180):
        return False
    return not (lat_f == 0 and lng_f == 0)


def _coordinates(lat: Any, lng: Any) -> GeoCoordinates | None:
    if not is_valid_coordinate(lat, lng):
        return None
    return GeoCoordinates(latitude=float(lat), longitude=float(lng))


def from_structured(node: dict[str, Any] | None) -> GeoCoordinates | None:
    """Coordinates from a schema.org node's geo or address.geo."""
    if not isinstance(node, dict):
        return None

    nested = node.get("object") if isinstance(node.get("object"), dict) else {}

    for holder in (node, nested):
        geo = holder.get("geo")
        if isinstance(geo, dict):
            found = _coordinates(geo.get("latitude"), geo.get("longitude"))
            if found:
                return found

    for holder in (node, nested):
        address = holder.get("address")
        if isinstance(address, dict) and isinstance(address.get("geo"), dict):
            geo = address["geo"]
            found = _coordinates(geo.get("latitude"), geo.get("longitude"))
            if found:
                return found

    return None


def from_attributes(doc: Document) -> GeoCoordinates | None:
    for lat_attr, lng_attr in ATTRIBUTE_PAIRS:
        for element in doc.root.xpath(f"//*[@{lat_attr} and @{lng_attr}]"):
            found = _coordinates(element.get(lat_attr), element.get(lng_attr))
            if found:
                return found
    return None


def from_meta(doc: Document) -> GeoCoordinates | None:
    lat = doc.meta("place:location:latitude")
    lng = doc.meta("place:location:longitude")
    if lat is None or lng is None:
        return None
    return _coordinates(lat, lng)


def from_text(text: str) -> GeoCoordinates | None:
    for match in TEXT_PAIR_RE.finditer(text):
        found = _coordinates(match.group(1), match.group(2))
        if found:
            return found
    return None


def from_scripts(scripts: list[str]) -> GeoCoordinates | None:
    for text in scripts:
        lat_match = SCRIPT_LAT_RE.search(text)
        lng_match = SCRIPT_LNG_RE.search(text)
        if lat_match and lng_match:
            found = _coordinates(lat_match.group(1), lng_match.group(1))
            if found:
                return found
    return None


def resolve(node: dict[str, Any] | None, doc: Document) -> GeoCoordinates | None:
    """Resolve listing coordinates, first successful strategy wins."""
    return (
        from_structured(node)
        or from_attributes(doc)
        or from_meta(doc)
        or from_text(doc.body_text)
        or from_scripts(doc.inline_scripts())
    )
