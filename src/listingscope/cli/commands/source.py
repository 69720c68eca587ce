"""Loading pages from URLs or saved HTML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from listingscope.core.backends import HttpBackend
from listingscope.core.config.models import FetchConfig


@dataclass
class PageSource:
    """A page ready for extraction."""

    html: str
    url: str


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


async def load_page(source: str, url: str | None, fetch_config: FetchConfig) -> PageSource:
    """Fetch ``source`` if it is a URL, otherwise read it as a file.

    Raises:
        FetchError: If the URL cannot be fetched
        OSError: If the file cannot be read
    """
    if is_url(source):
        async with HttpBackend.from_config(fetch_config) as backend:
            result = await backend.fetch(source)
        return PageSource(html=result.html, url=url or result.final_url)

    path = Path(source)
    html = path.read_text(encoding="utf-8", errors="replace")
    return PageSource(html=html, url=url or path.resolve().as_uri())
