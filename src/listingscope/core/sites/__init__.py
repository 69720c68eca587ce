"""Site adapter implementations."""

from .base import SiteAdapter, delegate_to_generic, hostname_pattern
from .delegating import IDEALISTA, IMMOSCOUT24, REALTOR, RIGHTMOVE
from .zillow import ZILLOW

# Evaluated in this order; the first matching adapter is used
SITE_ADAPTERS: tuple[SiteAdapter, ...] = (
    ZILLOW,
    REALTOR,
    RIGHTMOVE,
    IDEALISTA,
    IMMOSCOUT24,
)

__all__ = [
    "SiteAdapter",
    "SITE_ADAPTERS",
    "delegate_to_generic",
    "hostname_pattern",
    "ZILLOW",
    "REALTOR",
    "RIGHTMOVE",
    "IDEALISTA",
    "IMMOSCOUT24",
]
