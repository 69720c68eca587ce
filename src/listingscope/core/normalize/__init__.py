"""Normalization and canonicalization of extracted data."""

from .parsing import (
    absolute_url,
    detect_currency,
    normalize_whitespace,
    parse_number,
    pick_first,
    to_square_meters,
)
from .canonical import (
    Address,
    Area,
    ExtractionMethod,
    Listing,
    Media,
    Money,
    RoomInfo,
    Seller,
    Source,
    merge_missing,
)

__all__ = [
    # Parsing
    "absolute_url",
    "detect_currency",
    "normalize_whitespace",
    "parse_number",
    "pick_first",
    "to_square_meters",
    # Canonical
    "Address",
    "Area",
    "ExtractionMethod",
    "Listing",
    "Media",
    "Money",
    "RoomInfo",
    "Seller",
    "Source",
    "merge_missing",
]
