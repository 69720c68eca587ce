"""
HTTP page fetching using httpx.

Retries transport errors and transient status codes with exponential
backoff; anti-bot pages are reported as ``BlockedError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from listingscope.core.config.models import DEFAULT_USER_AGENT, FetchConfig

from .base import BlockedError, FetchError, FetchResult, RetryableStatusError

logger = logging.getLogger(__name__)


# Status codes that indicate blocking
BLOCKED_STATUS_CODES = {403, 406, 418, 451}

# Status codes that should trigger retry
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

BLOCKED_INDICATORS = (
    "captcha",
    "challenge-platform",
    "cf-browser-verification",
    "please verify you are human",
    "unusual traffic",
)


class HttpBackend:
    """Async page fetcher with connection pooling and retry."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 2.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP backend.

        Args:
            timeout: Request timeout in seconds
            max_retries: Retry attempts after the first request
            retry_backoff: Exponential backoff multiplier
            user_agent: User agent header
            transport: Custom httpx transport (tests)
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.headers = {
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: FetchConfig, **kwargs: Any) -> "HttpBackend":
        return cls(
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff_factor,
            user_agent=config.user_agent,
            **kwargs,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    def _check_response(self, response: httpx.Response) -> None:
        url = str(response.url)

        if response.status_code in RETRY_STATUS_CODES:
            raise RetryableStatusError(
                f"Transient status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        if response.status_code in BLOCKED_STATUS_CODES:
            raise BlockedError(
                f"Request blocked with status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        if not response.is_success:
            raise FetchError(
                f"Unexpected status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        text = response.text
        if len(text) < 50000:
            lowered = text.lower()
            for indicator in BLOCKED_INDICATORS:
                if indicator in lowered:
                    raise BlockedError(
                        f"Possible anti-bot block detected: '{indicator}' in response",
                        url=url,
                        status_code=response.status_code,
                    )

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page.

        Args:
            url: Page URL

        Returns:
            FetchResult with the decoded HTML

        Raises:
            FetchError: On network failure, non-2xx status or block page
        """
        client = await self._ensure_client()
        retry_count = 0

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(multiplier=self.retry_backoff, max=30),
                retry=retry_if_exception_type((httpx.TransportError, RetryableStatusError)),
                reraise=True,
            ):
                with attempt:
                    retry_count = attempt.retry_state.attempt_number - 1
                    if retry_count:
                        logger.debug(f"Retrying {url} (attempt {retry_count + 1})")

                    start = time.monotonic()
                    response = await client.get(url)
                    elapsed_ms = (time.monotonic() - start) * 1000

                    self._check_response(response)

                    return FetchResult(
                        url=url,
                        final_url=str(response.url),
                        status_code=response.status_code,
                        html=response.text,
                        headers=dict(response.headers),
                        elapsed_ms=elapsed_ms,
                        retry_count=retry_count,
                    )
        except FetchError:
            raise
        except httpx.HTTPError as e:
            raise FetchError(
                f"Transport error after {retry_count + 1} attempts: {e}",
                url=url,
                cause=e,
            ) from e

        # AsyncRetrying always returns or raises above
        raise FetchError(f"Fetch failed: {url}", url=url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpBackend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
