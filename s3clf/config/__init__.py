"""Configuration module for s3clf."""

from s3clf.config.settings import (
    APISettings,
    ConversionSettings,
    FilterSettings,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "APISettings",
    "ConversionSettings",
    "FilterSettings",
]
