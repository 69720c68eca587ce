"""
Heuristic enrichment over whole-page text.

Fills fields that earlier strategies left empty. Filled fields are
never overwritten, so the pass can run any number of times.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import replace

from ..config.models import ExtractionSettings
from ..normalize.canonical import Address, Area, Listing, Money, merge_missing
from ..normalize.parsing import parse_number, to_square_meters
from .document import Document
from .images import scan_dom_images


# Patterns counted for the page-wide currency vote
CURRENCY_FREQUENCY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\$"), "USD"),
    (re.compile(r"€"), "EUR"),
    (re.compile(r"£"), "GBP"),
    (re.compile(r"₽|руб\.?|RUB", re.IGNORECASE), "RUB"),
    (re.compile(r"₴|грн|UAH", re.IGNORECASE), "UAH"),
    (re.compile(r"¥|円|JPY", re.IGNORECASE), "JPY"),
    (re.compile(r"₹|INR", re.IGNORECASE), "INR"),
    (re.compile(r"₩|KRW", re.IGNORECASE), "KRW"),
    (re.compile(r"CHF", re.IGNORECASE), "CHF"),
)

_CURRENCY_TOKEN = r"\$|€|£|₽|₴|¥|₹|₩|CHF|USD|EUR|GBP|RUB|UAH|JPY|INR|KRW"

# Numeric runs stay on one line and end with a digit
_PRICE_NUMBER = r"\d(?:[\d \t\u00a0.,]*\d)?"

PRICE_NEAR_CURRENCY_PATTERNS = (
    re.compile(rf"({_CURRENCY_TOKEN})[ \t\u00a0]*({_PRICE_NUMBER})", re.IGNORECASE),
    re.compile(rf"({_PRICE_NUMBER})[ \t\u00a0]*({_CURRENCY_TOKEN})", re.IGNORECASE),
)

CURRENCY_TOKENS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₽": "RUB",
    "₴": "UAH",
    "¥": "JPY",
    "₹": "INR",
    "₩": "KRW",
    "CHF": "CHF",
    "USD": "USD",
    "EUR": "EUR",
    "GBP": "GBP",
    "RUB": "RUB",
    "UAH": "UAH",
    "JPY": "JPY",
    "INR": "INR",
    "KRW": "KRW",
}

AREA_TEXT_RE = re.compile(
    rf"({_PRICE_NUMBER})[ \t\u00a0]*(m2|m²|sqm|кв\.?\s*м|sq\.?\s*ft|ft²)",
    re.IGNORECASE,
)
_SQFT_RE = re.compile(r"sq\.?\s*ft|ft²", re.IGNORECASE)

ADDRESS_QUERIES = [
    ("class", "location"),
    ("class", "address"),
    ("class", "addr"),
    ("class", "map"),
    ("class", "place"),
    ("data-testid", "location"),
    ("css", "[itemprop='address']"),
]

# Rent keywords are checked before sale keywords
RENT_KEYWORDS_RE = re.compile(
    r"rent|aluguel|alquiler|miete|аренда|nájem|임대|賃貸|租",
    re.IGNORECASE,
)
SALE_KEYWORDS_RE = re.compile(
    r"sale|venta|venda|verkauf|продажа|prodaja|sprzedaż|продам",
    re.IGNORECASE,
)


def infer_transaction_type(text: str | None) -> str | None:
    """"rent" or "sale" from multilingual keywords, rent checked first."""
    if not text:
        return None
    if RENT_KEYWORDS_RE.search(text):
        return "rent"
    if SALE_KEYWORDS_RE.search(text):
        return "sale"
    return None


def choose_currency_by_frequency(text: str, min_occurrences: int = 3) -> str | None:
    """Most frequent currency in text, if it appears often enough."""
    if not text:
        return None

    counts: Counter[str] = Counter()
    for pattern, code in CURRENCY_FREQUENCY_PATTERNS:
        found = len(pattern.findall(text))
        if found:
            counts[code] += found

    if not counts:
        return None

    # Ties keep the pattern order
    code, count = counts.most_common(1)[0]
    return code if count >= min_occurrences else None


def find_price_near_currency(text: str) -> Money | None:
    """First "$ 250,000" / "250 000 €" style price in text."""
    if not text:
        return None

    for index, pattern in enumerate(PRICE_NEAR_CURRENCY_PATTERNS):
        match = pattern.search(text)
        if not match:
            continue
        if index == 0:
            token, number = match.group(1), match.group(2)
        else:
            number, token = match.group(1), match.group(2)
        currency = CURRENCY_TOKENS.get(token) or CURRENCY_TOKENS.get(token.upper())
        return Money(amount=parse_number(number), currency=currency)

    return None


def find_area_in_text(text: str) -> Area | None:
    """First "56 m2" / "600 sq ft" style area in text, in square meters."""
    if not text:
        return None

    match = AREA_TEXT_RE.search(text)
    if not match:
        return None

    value = parse_number(match.group(1))
    if value is None:
        return None

    unit = "sqft" if _SQFT_RE.search(match.group(2)) else "m2"
    meters, canonical = to_square_meters(value, unit)
    return Area(value=meters, unit=canonical)


def find_address_by_selectors(doc: Document, min_length: int = 10) -> str | None:
    """Longest text among location-like elements."""
    best: str | None = None
    elements = []
    for kind, value in ADDRESS_QUERIES:
        elements.extend(doc.css(value) if kind == "css" else doc.attr_contains(kind, value))

    for element in elements:
        text = Document.element_text(element)
        if not text or len(text) <= min_length:
            continue
        if best is None or len(text) > len(best):
            best = text
    return best


def find_title_fallback(doc: Document) -> str | None:
    h1 = doc.css_first("h1")
    return Document.element_text(h1) or doc.title


def enrich(
    listing: Listing,
    doc: Document,
    settings: ExtractionSettings | None = None,
) -> Listing:
    """Fill missing listing fields from page-wide heuristics.

    Returns a new listing; the input is not modified.
    """
    settings = settings or ExtractionSettings()
    text = doc.body_text
    result = listing

    frequent_currency = choose_currency_by_frequency(text, settings.currency_min_occurrences)

    if frequent_currency:
        if result.price is None or result.price.currency is None:
            amount = result.price.amount if result.price else None
            result = replace(result, price=Money(amount=amount, currency=frequent_currency))
        if result.price_per_area is not None and result.price_per_area.currency is None:
            result = replace(
                result,
                price_per_area=replace(result.price_per_area, currency=frequent_currency),
            )

    if result.price is None or result.price.amount is None:
        found = find_price_near_currency(text)
        if found is not None:
            currency = (result.price.currency if result.price else None) or found.currency or frequent_currency
            result = replace(result, price=Money(amount=found.amount, currency=currency))

    if result.area is None or result.area.value is None:
        area = find_area_in_text(text)
        if area is not None:
            result = replace(result, area=area)

    if result.address is None or not result.address.formatted:
        formatted = find_address_by_selectors(doc, settings.min_address_length)
        if formatted:
            address = result.address or Address()
            result = replace(result, address=replace(address, formatted=formatted))

    if not result.images:
        images = scan_dom_images(doc, settings.dom_image_limit)
        if images:
            result = replace(result, images=images)

    return merge_missing(
        result,
        title=find_title_fallback(doc) if not result.title else None,
        transaction_type=infer_transaction_type(text) if not result.transaction_type else None,
    )
