"""
Configuration module for propresolver.

Uses pydantic-settings for environment variable loading.
"""

from propresolver.config.settings import ResolverSettings
from propresolver.config.sources import ConfigFileError
from propresolver.config.types import (
    DirectoryConfig,
    HttpConfig,
    OverrideMode,
    PlaceholderConfig,
    PrecedenceOrder,
)

__all__ = [
    "ConfigFileError",
    "DirectoryConfig",
    "HttpConfig",
    "OverrideMode",
    "PlaceholderConfig",
    "PrecedenceOrder",
    "ResolverSettings",
]
