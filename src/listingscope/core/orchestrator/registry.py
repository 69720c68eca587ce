"""
Extraction registry.

Routes a page to the first site adapter that recognizes its hostname,
falls back to the generic extractor, runs the enrichment pass and
stamps provenance on the result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from urllib.parse import urlparse

from listingscope.core.config.models import ExtractionSettings
from listingscope.core.extract.document import Document
from listingscope.core.extract.generic import parse_generic
from listingscope.core.extract.heuristics import enrich
from listingscope.core.extract.images import Measurer
from listingscope.core.logging import ContextualLogger
from listingscope.core.normalize.canonical import ExtractionMethod, Listing, Source
from listingscope.core.sites import SITE_ADAPTERS, SiteAdapter

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Adapter selection with generic fallback."""

    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        measurer: Measurer | None = None,
        adapters: tuple[SiteAdapter, ...] = SITE_ADAPTERS,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Extraction thresholds
            measurer: Image measurer (downloads images if None)
            adapters: Site adapters in priority order
        """
        self.settings = settings or ExtractionSettings()
        self.measurer = measurer
        self.adapters = adapters

    def find_adapter(self, hostname: str) -> SiteAdapter | None:
        """First adapter that handles ``hostname``."""
        return next((adapter for adapter in self.adapters if adapter.test(hostname)), None)

    async def extract(self, html: str | bytes, url: str, base_url: str | None = None) -> Listing:
        """Extract a listing from a page.

        Args:
            html: Page HTML
            url: Page URL (used for the hostname and the result's url)
            base_url: Base for relative links (defaults to <base href> or url)

        Returns:
            Listing with source provenance stamped

        Raises:
            DocumentError: If the page cannot be parsed at all
        """
        doc = Document.from_html(html, url, base_url)
        log = ContextualLogger(logger, site=doc.hostname, url=url)

        adapter = self.find_adapter(doc.hostname)
        listing: Listing | None = None
        method: ExtractionMethod | None = None

        if adapter is not None:
            log.debug(f"Using {adapter.name} adapter")
            try:
                listing = await adapter.parse(doc, settings=self.settings, measurer=self.measurer)
                method = ExtractionMethod.DOM
            except Exception:
                log.warning(
                    f"Adapter {adapter.name} failed, falling back to generic extraction",
                    exc_info=True,
                    extra={"adapter": adapter.name},
                )
                listing = None

        if listing is None:
            listing = await parse_generic(doc, settings=self.settings, measurer=self.measurer)
            method = listing.source.method if listing.source else ExtractionMethod.HYBRID

        listing = enrich(listing, doc, self.settings)
        return self._stamp(listing, doc.hostname, url, method)

    def stamp_remote(self, payload: dict[str, Any] | Listing, url: str) -> Listing:
        """Apply provenance to a listing produced by the remote service."""
        listing = payload if isinstance(payload, Listing) else Listing.from_dict(payload)
        return self._stamp(listing, (urlparse(url).hostname or "").lower(), url, ExtractionMethod.HYBRID)

    @staticmethod
    def _stamp(listing: Listing, domain: str, url: str, method: ExtractionMethod) -> Listing:
        return replace(listing, url=url, source=Source.now(domain, method))


async def extract_listing(
    html: str | bytes,
    url: str,
    base_url: str | None = None,
    *,
    settings: ExtractionSettings | None = None,
    measurer: Measurer | None = None,
) -> Listing:
    """Convenience wrapper around ``ExtractionPipeline.extract``."""
    pipeline = ExtractionPipeline(settings=settings, measurer=measurer)
    return await pipeline.extract(html, url, base_url)
