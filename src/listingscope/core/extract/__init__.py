"""Extraction strategies for listing pages."""

from .base import DocumentError, ExtractionError
from .document import Document
from .generic import parse_generic
from .geo import GeoCoordinates
from .heuristics import enrich
from .images import ImageCandidate, ImageMeasurer, extract_property_images, score_image
from .structured import extract_jsonld, extract_open_graph, extract_twitter, find_listing_node

__all__ = [
    "Document",
    "DocumentError",
    "ExtractionError",
    "GeoCoordinates",
    "ImageCandidate",
    "ImageMeasurer",
    "enrich",
    "extract_jsonld",
    "extract_open_graph",
    "extract_property_images",
    "extract_twitter",
    "find_listing_node",
    "parse_generic",
    "score_image",
]
