"""Adapters for sites whose pages the generic extractor already covers."""

from __future__ import annotations

from .base import SiteAdapter, delegate_to_generic, hostname_pattern


REALTOR = SiteAdapter(
    name="realtor",
    pattern=hostname_pattern(r"realtor\.(com|ca)"),
    parse=delegate_to_generic,
)

RIGHTMOVE = SiteAdapter(
    name="rightmove",
    pattern=hostname_pattern(r"rightmove\.co\.uk"),
    parse=delegate_to_generic,
)

IDEALISTA = SiteAdapter(
    name="idealista",
    pattern=hostname_pattern(r"idealista\.(com|it|pt|es)"),
    parse=delegate_to_generic,
)

IMMOSCOUT24 = SiteAdapter(
    name="immoscout24",
    pattern=hostname_pattern(r"(immobilienscout24|immoscout24)\.(de|ch)"),
    parse=delegate_to_generic,
)
