"""
Fetch data structures and errors.

Pages are usually handed to the extractor already loaded; fetching is
only needed when the command line is given a URL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class FetchResult:
    """Result of a page fetch."""

    url: str
    final_url: str  # After redirects
    status_code: int
    html: str
    headers: dict[str, str]

    elapsed_ms: float
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    retry_count: int = 0

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300

    @property
    def content_length(self) -> int:
        """Get content length in bytes."""
        return len(self.html.encode("utf-8"))


class BackendError(Exception):
    """Base exception for fetch errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(BackendError):
    """The page could not be fetched."""


class RetryableStatusError(FetchError):
    """Transient status (429 or 5xx); retried before surfacing."""


class BlockedError(FetchError):
    """Request blocked by anti-bot measures."""
