"""
Canonical listing model for normalized data.

Provides the structured record produced by every extraction strategy,
its transport serialization, and the gap-filling merge used when
several strategies contribute to one listing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .parsing import parse_number, to_square_meters


class ExtractionMethod(str, Enum):
    """Provenance tag describing which strategy produced a listing."""

    JSONLD = "jsonld"
    OPENGRAPH = "opengraph"
    META = "meta"
    DOM = "dom"
    HYBRID = "hybrid"


TRANSACTION_TYPES = ("sale", "rent", "lease", "auction")


@dataclass
class Money:
    """Amount and currency, independently nullable."""

    amount: float | None = None
    currency: str | None = None


@dataclass
class Area:
    """Area value; unit is "m2" once converted."""

    value: float | None = None
    unit: str | None = None


@dataclass
class RoomInfo:
    """Room counts as published, without consistency checks."""

    rooms: float | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.rooms is None and self.bedrooms is None and self.bathrooms is None


@dataclass
class Address:
    """Postal address with optional coordinates."""

    country: str | None = None
    region: str | None = None  # state/province
    city: str | None = None
    district: str | None = None
    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    formatted: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_structured_parts(self) -> bool:
        return bool(self.street and self.city)

    @property
    def display(self) -> str | None:
        """Human-readable address, preferring ``formatted`` for partial data."""
        if self.formatted and not self.has_structured_parts:
            return self.formatted
        parts = [
            " ".join(p for p in (self.street, self.house_number) if p),
            self.district,
            self.city,
            " ".join(p for p in (self.region, self.postal_code) if p),
            self.country,
        ]
        joined = ", ".join(p for p in parts if p)
        return joined or self.formatted


@dataclass
class Media:
    url: str
    type: str = "image"  # image, video


@dataclass
class Seller:
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    type: str | None = None  # agent, owner, builder


@dataclass
class Source:
    """Provenance of an extracted listing."""

    domain: str
    extracted_at: str
    method: ExtractionMethod

    @classmethod
    def now(cls, domain: str, method: ExtractionMethod) -> "Source":
        return cls(
            domain=domain,
            extracted_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            method=method,
        )


@dataclass
class Listing:
    """A partial real-estate listing.

    Every field is optional; None means "unknown", not "empty".
    """

    url: str | None = None
    id: str | None = None
    title: str | None = None
    description: str | None = None
    price: Money | None = None
    price_per_area: Money | None = None
    area: Area | None = None
    lot_area: Area | None = None
    floor: float | None = None
    total_floors: float | None = None
    year_built: float | None = None
    property_type: str | None = None
    transaction_type: str | None = None
    furnished: bool | None = None
    condition: str | None = None
    rooms: RoomInfo | None = None
    address: Address | None = None
    amenities: list[str] | None = None
    media: list[Media] | None = None
    images: list[str] | None = None
    seller: Seller | None = None
    source: Source | None = None
    raw: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase transport shape, omitting unknown fields."""
        return _to_transport(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Listing":
        """Build a listing from the camelCase transport shape.

        Unknown keys are ignored; nested objects that are not mappings
        are dropped.

        Raises:
            TypeError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise TypeError(f"Listing payload must be an object, got {type(data).__name__}")

        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "source":
                # Provenance is always stamped by the pipeline
                continue
            key = _camel(f.name)
            if key not in data or data[key] is None:
                continue
            value = data[key]
            nested = _NESTED_TYPES.get(f.name)
            if nested is not None:
                value = _build_nested(nested, value)
            elif f.name in _NUMERIC_FIELDS:
                value = parse_number(value)
            elif f.name == "media":
                value = _build_media(value)
            elif f.name in ("amenities", "images"):
                value = [str(v) for v in value] if isinstance(value, list) else None
            elif f.name == "transaction_type":
                value = value if value in TRANSACTION_TYPES else None
            if value is not None:
                values[f.name] = value
        return cls(**values)


_NESTED_TYPES: dict[str, type] = {
    "price": Money,
    "price_per_area": Money,
    "area": Area,
    "lot_area": Area,
    "rooms": RoomInfo,
    "address": Address,
    "seller": Seller,
}

_NUMERIC_FIELDS = ("floor", "total_floors", "year_built")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _to_transport(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        out: dict[str, Any] = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            out[_camel(f.name)] = _to_transport(item)
        return out
    if isinstance(value, list):
        return [_to_transport(v) for v in value]
    return value


def _build_nested(cls: type, value: Any) -> Any:
    if not isinstance(value, dict):
        return None
    names = {f.name for f in fields(cls)}
    kwargs = {}
    for name in names:
        key = _camel(name)
        if key in value:
            kwargs[name] = value[key]
    return _normalize_nested(cls(**kwargs))


def _normalize_nested(value: Any) -> Any:
    # Service payloads may carry numeric strings and raw area units
    if isinstance(value, Money):
        value.amount = parse_number(value.amount)
    elif isinstance(value, Area):
        value.value, value.unit = to_square_meters(parse_number(value.value), value.unit)
    elif isinstance(value, RoomInfo):
        value.rooms = parse_number(value.rooms)
        value.bedrooms = parse_number(value.bedrooms)
        value.bathrooms = parse_number(value.bathrooms)
    return value


def _build_media(value: Any) -> list[Media] | None:
    if not isinstance(value, list):
        return None
    media = []
    for item in value:
        if isinstance(item, dict) and item.get("url"):
            media.append(Media(url=str(item["url"]), type=item.get("type") or "image"))
    return media


# =============================================================================
# Gap-filling merge
# =============================================================================


def is_missing(value: Any) -> bool:
    """True for values that count as an unfilled field."""
    if value is None:
        return True
    if isinstance(value, (list, str)) and not value:
        return True
    return False


def merge_missing(base: Listing, **candidates: Any) -> Listing:
    """Return a copy of ``base`` with candidates applied to absent fields only.

    Filled fields are never overwritten; ``None`` candidates are ignored.
    """
    updates = {
        name: value
        for name, value in candidates.items()
        if value is not None and is_missing(getattr(base, name))
    }
    if not updates:
        return base
    return replace(base, **updates)
