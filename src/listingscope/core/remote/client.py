"""
Client for the remote AI extraction service.

The service accepts a (preferably preprocessed) page and answers with a
listing in the camelCase transport shape. Every failure is reported as
a typed ``RemoteResult``; nothing is retried.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from listingscope.core.config.models import RemoteServiceConfig
from listingscope.core.normalize.canonical import Listing

logger = logging.getLogger(__name__)

_BEARER_PREFIX_RE = re.compile(r"^Bearer\s+", re.IGNORECASE)


class RemoteErrorKind(str, Enum):
    """Why a remote extraction produced no listing."""

    BAD_REQUEST = "bad_request"
    NO_CREDENTIAL = "no_credential"
    EMPTY_CREDENTIAL = "empty_credential"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class RemoteResult:
    """Outcome of one call to the extraction service."""

    ok: bool
    listing: Listing | None = None
    error: RemoteErrorKind | None = None
    status: int | None = None
    body: str | None = None
    message: str | None = None

    @classmethod
    def failure(cls, error: RemoteErrorKind, **kwargs: Any) -> "RemoteResult":
        return cls(ok=False, error=error, **kwargs)


def normalize_token(token: str | None) -> str | None:
    """Strip an optional ``Bearer`` prefix and surrounding whitespace.

    Returns None when no token is configured and "" when only the
    prefix or whitespace remains.
    """
    if token is None:
        return None
    return _BEARER_PREFIX_RE.sub("", str(token).lstrip()).strip()


class RemoteExtractionClient:
    """Sends pages to the extraction service."""

    def __init__(
        self,
        config: RemoteServiceConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or RemoteServiceConfig()
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return str(httpx.URL(self.config.api_base).join(self.config.endpoint_path))

    async def parse(self, html: str, url: str) -> RemoteResult:
        """Ask the service to extract a listing.

        Args:
            html: Page HTML
            url: Page URL

        Returns:
            RemoteResult; ``listing`` is set only when ``ok``
        """
        if not html or not url:
            return RemoteResult.failure(RemoteErrorKind.BAD_REQUEST)

        token = normalize_token(self.config.token)
        if token is None:
            return RemoteResult.failure(RemoteErrorKind.NO_CREDENTIAL)
        if not token:
            return RemoteResult.failure(RemoteErrorKind.EMPTY_CREDENTIAL)

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json={"html": html, "url": url},
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Remote extraction request failed: {e}")
            return RemoteResult.failure(RemoteErrorKind.TRANSPORT_ERROR, message=str(e) or type(e).__name__)

        body = response.text
        if not response.is_success:
            logger.warning(f"Remote extraction returned status {response.status_code}")
            return RemoteResult.failure(
                RemoteErrorKind.HTTP_STATUS,
                status=response.status_code,
                body=body,
            )

        try:
            listing = Listing.from_dict(response.json())
        except (ValueError, TypeError) as e:
            logger.warning(f"Remote extraction returned an unreadable listing: {e}")
            return RemoteResult.failure(
                RemoteErrorKind.MALFORMED_RESPONSE,
                status=response.status_code,
                body=body,
                message=str(e),
            )

        return RemoteResult(ok=True, listing=listing, status=response.status_code, body=body)
