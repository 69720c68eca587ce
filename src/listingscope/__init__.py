"""
ListingScope - Real-estate listing extraction from saved or fetched pages.

Reads a listing page's linked data, meta tags and markup and produces a
normalized listing record with price, area, address, rooms and photos.
"""

__version__ = "0.1.0"
__app_name__ = "listingscope"
