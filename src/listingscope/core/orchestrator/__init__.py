"""Extraction orchestration."""

from .registry import ExtractionPipeline, extract_listing

__all__ = ["ExtractionPipeline", "extract_listing"]
