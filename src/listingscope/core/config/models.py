"""
Pydantic configuration models for ListingScope.

These models provide type-safe configuration with validation for:
- Extraction heuristics (image scoring, gallery detection, currency voting)
- The remote AI extraction service
- Page fetching for the command line
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


# =============================================================================
# Extraction Configuration
# =============================================================================


class ExtractionSettings(BaseModel):
    """Thresholds used by the heuristic extractors."""

    max_images: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum number of image URLs returned",
    )
    min_image_size: int = Field(
        default=300,
        ge=1,
        description="Minimum width and height in pixels for a listing photo",
    )
    ideal_image_size: int = Field(
        default=800,
        ge=1,
        description="Width/height that receives the full size score",
    )
    gallery_min_images: int = Field(
        default=3,
        ge=1,
        description="Images needed for a gallery-like element to count as a gallery",
    )
    container_min_images: int = Field(
        default=5,
        ge=1,
        description="Child/grandchild images needed for a plain container to count as a gallery",
    )
    structured_image_score: float = Field(
        default=50.0,
        ge=0.0,
        description="Score given to images referenced by linked data",
    )
    measure_timeout: float = Field(
        default=3.0,
        gt=0.0,
        le=60.0,
        description="Seconds allowed for downloading one image to measure it",
    )
    measure_images: bool = Field(
        default=True,
        description="Download images without declared dimensions to measure them",
    )
    currency_min_occurrences: int = Field(
        default=3,
        ge=1,
        description="Occurrences needed before a page-wide currency vote is accepted",
    )
    dom_image_limit: int = Field(
        default=6,
        ge=1,
        description="Images taken by the raw DOM fallback scan",
    )
    min_address_length: int = Field(
        default=10,
        ge=0,
        description="Address text must be longer than this to be accepted",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent sent when measuring images",
    )

    @field_validator("ideal_image_size")
    @classmethod
    def ideal_gte_min(cls, v: int, info) -> int:
        """Ensure the ideal size is not below the minimum size."""
        min_size = info.data.get("min_image_size", 0)
        if v < min_size:
            raise ValueError("ideal_image_size must be >= min_image_size")
        return v


# =============================================================================
# Remote Service Configuration
# =============================================================================


class RemoteServiceConfig(BaseModel):
    """Settings for the remote AI extraction service."""

    api_base: str = Field(
        default="https://spacenplace.me",
        description="Base URL of the extraction service",
    )
    endpoint_path: str = Field(
        default="/api/parse-ad",
        description="Path of the extraction endpoint",
    )
    token: str | None = Field(
        default=None,
        description="Bearer token (prefix optional)",
    )
    timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Request timeout in seconds",
    )


# =============================================================================
# Fetch Configuration
# =============================================================================


class FetchConfig(BaseModel):
    """Page fetching settings for the command line."""

    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retry attempts on transient failures",
    )
    retry_backoff_factor: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Exponential backoff multiplier for retries",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT)


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration."""

    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    remote: RemoteServiceConfig = Field(default_factory=RemoteServiceConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    log_level: str = Field(
        default="INFO",
        description="Default log level",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional JSON-lines log file",
    )

    @field_validator("log_level")
    @classmethod
    def valid_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
