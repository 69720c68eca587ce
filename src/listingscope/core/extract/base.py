"""
Extraction errors.

Strategy failures are recovered inside the pipeline; only document
access failures reach the caller.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for extraction errors."""


class DocumentError(ExtractionError):
    """The document could not be read or parsed."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)
