"""Remote AI extraction service support."""

from .client import RemoteErrorKind, RemoteExtractionClient, RemoteResult, normalize_token
from .preprocess import format_size, html_size, preprocess_html

__all__ = [
    "RemoteErrorKind",
    "RemoteExtractionClient",
    "RemoteResult",
    "format_size",
    "html_size",
    "normalize_token",
    "preprocess_html",
]
