"""WineTrail configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/winetrail/config.toml (user config)
4. /etc/winetrail/config.toml (system config)

Secrets (Stripe, Google Places, ImgBB keys) are loaded from secrets.env
files in the same directories.
"""

from winetrail.config.schema import (
    AuthConfig,
    DatabaseConfig,
    EmailConfig,
    GeocodingConfig,
    PaymentsConfig,
    SecretsConfig,
    ServerConfig,
    StorageConfig,
    WinetrailConfig,
)
from winetrail.config.settings import Settings, get_settings, settings

__all__ = [
    "AuthConfig",
    "DatabaseConfig",
    "EmailConfig",
    "GeocodingConfig",
    "PaymentsConfig",
    "SecretsConfig",
    "ServerConfig",
    "Settings",
    "StorageConfig",
    "WinetrailConfig",
    "get_settings",
    "settings",
]
