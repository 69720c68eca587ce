"""
Site adapter contract.

An adapter recognizes one listing site by hostname and produces a
partial listing for its pages, either from the site's embedded state
or by delegating to the generic extractor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Awaitable, Protocol

from listingscope.core.config.models import ExtractionSettings
from listingscope.core.extract.document import Document
from listingscope.core.extract.generic import parse_generic
from listingscope.core.extract.images import Measurer
from listingscope.core.normalize.canonical import Listing


class ParseFunction(Protocol):
    def __call__(
        self,
        doc: Document,
        *,
        settings: ExtractionSettings,
        measurer: Measurer | None,
    ) -> Awaitable[Listing]: ...


@dataclass(frozen=True)
class SiteAdapter:
    """A known listing site."""

    name: str
    pattern: re.Pattern[str]
    parse: ParseFunction

    def test(self, hostname: str) -> bool:
        """Whether this adapter handles pages served from ``hostname``."""
        return bool(self.pattern.search(hostname or ""))


def hostname_pattern(expression: str) -> re.Pattern[str]:
    """Compile a hostname pattern that also matches subdomains."""
    return re.compile(rf"(^|\.){expression}$", re.IGNORECASE)


async def delegate_to_generic(
    doc: Document,
    *,
    settings: ExtractionSettings,
    measurer: Measurer | None,
) -> Listing:
    """Parse function for sites whose pages the generic extractor handles."""
    return await parse_generic(doc, settings=settings, measurer=measurer)
