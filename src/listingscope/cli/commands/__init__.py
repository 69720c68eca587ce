"""CLI command modules."""

from . import extract, preprocess

__all__ = [
    "extract",
    "preprocess",
]
