"""Global settings instance for WineTrail.

This module provides a unified settings object that combines:
- Configuration from config.toml
- Secrets from secrets.env
- Environment variable overrides
"""

import logging
import secrets as secrets_module
from pathlib import Path

from winetrail.config.loader import load_config, load_secrets
from winetrail.config.schema import GeocodingConfig, SecretsConfig, WinetrailConfig

logger = logging.getLogger(__name__)


class Settings:
    """Unified settings object combining config and secrets.

    Exposes a flat property interface over the structured
    WinetrailConfig and SecretsConfig.
    """

    def __init__(
        self,
        config: WinetrailConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        """Initialize settings.

        Args:
            config: Optional WinetrailConfig instance. If not provided, loads from file.
            secrets: Optional SecretsConfig instance. If not provided, loads from file.
        """
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: No secret key configured. "
                "A random secret key has been generated. JWT tokens will be invalidated "
                "when the server restarts. Set WINETRAIL_SECRET_KEY for production use."
            )

    @property
    def config(self) -> WinetrailConfig:
        """Get the full configuration object."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration object."""
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def workers(self) -> int:
        return self._config.server.workers

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    @property
    def rate_limit_per_minute(self) -> int:
        return self._config.server.rate_limit_per_minute

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def mongodb_url(self) -> str:
        return self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    # Storage
    @property
    def data_dir(self) -> Path:
        return self._config.storage.data_dir

    @property
    def image_storage_path(self) -> Path:
        return self._config.storage.images_dir

    @property
    def image_backend(self) -> str:
        return self._config.storage.image_backend

    @property
    def imgbb_upload_url(self) -> str:
        return self._config.storage.imgbb_upload_url

    @property
    def max_upload_size_mb(self) -> int:
        return self._config.storage.max_upload_mb

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.storage.max_upload_bytes

    # Auth
    @property
    def auth_enabled(self) -> bool:
        return self._config.auth.enabled

    @property
    def registration_enabled(self) -> bool:
        return self._config.auth.registration_enabled

    @property
    def email_verification_required(self) -> bool:
        return self._config.auth.email_verification_required

    @property
    def auth_rate_limit_per_minute(self) -> int:
        return self._config.auth.auth_rate_limit_per_minute

    @property
    def minimum_age(self) -> int:
        return self._config.auth.minimum_age

    # Email
    @property
    def email_backend(self) -> str:
        return self._config.email.backend

    @property
    def email_sender(self) -> str:
        return self._config.email.from_address

    @property
    def email_sender_name(self) -> str:
        return self._config.email.from_name

    @property
    def frontend_url(self) -> str:
        return self._config.email.frontend_url

    @property
    def aws_region(self) -> str:
        return self._config.email.aws_region

    # Analytics
    @property
    def posthog_enabled(self) -> bool:
        return self._config.analytics.posthog_enabled

    @property
    def posthog_host(self) -> str:
        return self._config.analytics.posthog_host

    @property
    def posthog_debug(self) -> bool:
        return self._config.analytics.posthog_debug

    # Payments
    @property
    def payment_currency(self) -> str:
        return self._config.payments.currency

    @property
    def checkout_success_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}{self._config.payments.success_path}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}{self._config.payments.cancel_path}"

    # Geocoding
    @property
    def geocoding(self) -> GeocodingConfig:
        return self._config.geocoding

    # Secrets
    @property
    def secret_key(self) -> str:
        return self._secrets.secret_key or ""

    @property
    def stripe_secret_key(self) -> str | None:
        return self._secrets.stripe_secret_key

    @property
    def stripe_webhook_secret(self) -> str | None:
        return self._secrets.stripe_webhook_secret

    @property
    def google_places_api_key(self) -> str | None:
        return self._secrets.google_places_api_key

    @property
    def imgbb_api_key(self) -> str | None:
        return self._secrets.imgbb_api_key

    @property
    def aws_access_key_id(self) -> str | None:
        return self._secrets.aws_access_key_id

    @property
    def aws_secret_access_key(self) -> str | None:
        return self._secrets.aws_secret_access_key

    @property
    def posthog_api_key(self) -> str | None:
        return self._secrets.posthog_api_key


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    The settings are loaded once and cached for subsequent calls.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (used by tests to reload configuration)."""
    global _settings
    _settings = None


class _SettingsProxy:
    """Proxy object that lazily loads settings on first access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()
