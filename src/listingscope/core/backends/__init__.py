"""Page fetching for the command line."""

from .base import BackendError, BlockedError, FetchError, FetchResult, RetryableStatusError
from .http_backend import HttpBackend

__all__ = [
    "BackendError",
    "BlockedError",
    "FetchError",
    "FetchResult",
    "HttpBackend",
    "RetryableStatusError",
]
