"""
Parsing utilities for normalizing extracted data.

Handles locale-ambiguous numbers, currencies, area units and URLs
as they appear on listing pages.
"""

from __future__ import annotations

import math
import re
from typing import Any, TypeVar
from urllib.parse import urljoin, urlparse


T = TypeVar("T")


# =============================================================================
# Number Parsing
# =============================================================================


_NON_NUMERIC_RE = re.compile(r"[^0-9.,\-\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_number(value: Any) -> float | None:
    """Parse a locale-ambiguous numeric string.

    Separator rules:
    - Both "." and "," present: the rightmost one is the decimal
      separator, the other is a thousands separator
    - One separator kind repeated: all occurrences are thousands separators
    - A single separator: thousands separator only when exactly three
      digits follow it, decimal separator otherwise
    - Whitespace is always a thousands separator

    "1.234" therefore parses as 1234, while "1.23" parses as 1.23.

    Args:
        value: Raw value (string or number)

    Returns:
        Parsed float, or None when nothing numeric can be read
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    if not isinstance(value, str):
        return None

    text = value.replace("\u00a0", " ")
    text = _NON_NUMERIC_RE.sub("", text).strip()
    if not text:
        return None

    dot_count = text.count(".")
    comma_count = text.count(",")

    if dot_count and comma_count:
        decimal_sep = "." if text.rfind(".") > text.rfind(",") else ","
        thousands_sep = "," if decimal_sep == "." else "."
        text = text.replace(thousands_sep, "")
        if decimal_sep == ",":
            text = text.replace(",", ".")
    elif dot_count > 1:
        text = text.replace(".", "")
    elif comma_count > 1:
        text = text.replace(",", "")
    elif comma_count == 1:
        head, tail = text.split(",", 1)
        if len(re.sub(r"\D", "", tail)) == 3:
            text = head + tail
        else:
            text = head + "." + tail
    elif dot_count == 1:
        head, tail = text.split(".", 1)
        if len(re.sub(r"\D", "", tail)) == 3:
            text = head + tail

    text = _WHITESPACE_RE.sub("", text)

    try:
        number = float(text)
    except ValueError:
        return None

    return number if math.isfinite(number) else None


def pick_first(*candidates: T | None) -> T | None:
    """Return the first candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


# =============================================================================
# Currency Detection
# =============================================================================


# Evaluated in order, first substring match wins
CURRENCY_SYMBOLS: tuple[tuple[str, str], ...] = (
    ("$", "USD"),
    ("US$", "USD"),
    ("A$", "AUD"),
    ("C$", "CAD"),
    ("CA$", "CAD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("₽", "RUB"),
    ("₴", "UAH"),
    ("₪", "ILS"),
    ("₺", "TRY"),
    ("₹", "INR"),
    ("¥", "JPY"),
    ("₩", "KRW"),
    ("R$", "BRL"),
    ("zł", "PLN"),
)

CURRENCY_CODES = (
    "USD", "CAD", "AUD", "EUR", "GBP", "RUB", "UAH", "ILS", "TRY", "INR",
    "JPY", "KRW", "BRL", "PLN", "MXN", "COP", "ARS", "CLP", "PEN", "UYU",
    "CHF", "SEK", "NOK", "DKK", "CZK", "HUF", "RON", "BGN", "HRK", "RSD",
    "AED", "SAR", "QAR", "KWD", "BHD", "OMR", "EGP", "CNY", "HKD", "TWD",
    "SGD", "MYR", "THB", "VND", "IDR", "PHP", "PKR", "BDT", "ZAR",
)

_CURRENCY_CODE_RE = re.compile("(" + "|".join(CURRENCY_CODES) + ")", re.IGNORECASE)


def detect_currency(text: str | None) -> str | None:
    """Detect an ISO-like currency code in free text.

    Symbols are checked first in table order, then 3-letter codes.

    Args:
        text: Text to scan

    Returns:
        Currency code, or None if nothing matches
    """
    if not text:
        return None

    for symbol, code in CURRENCY_SYMBOLS:
        if symbol in text:
            return code

    match = _CURRENCY_CODE_RE.search(text)
    return match.group(1).upper() if match else None


# =============================================================================
# Area Units
# =============================================================================


SQFT_TO_M2 = 0.092903

SQUARE_METER_UNITS = ("m2", "m²", "sqm", "sq m", "square meter", "square metre", "кв. м", "кв.м", "mtk")
SQUARE_FOOT_UNITS = ("sqft", "sq ft", "sq. ft", "ft2", "ft²", "square foot", "square feet")

# schema.org unit codes
UNIT_CODES = {"MTK": "m2", "FTK": "sqft"}


def to_square_meters(value: float | None, unit: str | None) -> tuple[float | None, str | None]:
    """Convert an area to square meters.

    Unknown units are passed through with their original label.

    Args:
        value: Raw area value
        unit: Raw unit label (None means square meters)

    Returns:
        (value, unit) tuple
    """
    if value is None:
        return None, unit or None

    if not unit:
        return value, "m2"

    label = UNIT_CODES.get(unit.strip().upper(), unit)
    lowered = label.lower()

    if any(token in lowered for token in SQUARE_METER_UNITS):
        return value, "m2"
    if any(token in lowered for token in SQUARE_FOOT_UNITS):
        return value * SQFT_TO_M2, "m2"

    return value, unit


# =============================================================================
# Utility Functions
# =============================================================================


def normalize_whitespace(text: str | None) -> str | None:
    """Collapse whitespace runs, returning None for empty text."""
    if not text:
        return None
    collapsed = " ".join(text.split())
    return collapsed or None


def absolute_url(url: str | None, base: str | None) -> str | None:
    """Resolve a possibly relative URL against a base URL.

    Returns None for empty input or when the result is not http(s).
    """
    if not url:
        return None

    url = url.strip()
    resolved = urljoin(base, url) if base else url

    if urlparse(resolved).scheme not in ("http", "https"):
        return None
    return resolved
