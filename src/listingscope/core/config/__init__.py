"""Configuration loading and validation."""

from .models import (
    AppConfig,
    ExtractionSettings,
    FetchConfig,
    RemoteServiceConfig,
)
from .loader import ConfigError, load_app_config

__all__ = [
    # Config models
    "AppConfig",
    "ExtractionSettings",
    "FetchConfig",
    "RemoteServiceConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
]
