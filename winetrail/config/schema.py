"""Pydantic models for WineTrail configuration.

These models define the structure of config.toml and secrets.env files.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 2
    debug: bool = False
    enforce_https: bool = False
    rate_limit_per_minute: int = 60
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """MongoDB database configuration."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "winetrail"
    min_pool_size: int = 10
    max_pool_size: int = 100


class StorageConfig(BaseModel):
    """Listing image storage configuration."""

    data_dir: Path = Field(default_factory=lambda: Path("data"))
    log_dir: Path = Field(default_factory=lambda: Path("data/logs"))
    max_upload_mb: int = 10
    image_backend: Literal["local", "imgbb"] = "local"
    imgbb_upload_url: str = "https://api.imgbb.com/1/upload"

    @property
    def images_dir(self) -> Path:
        """Get the images directory path."""
        return self.data_dir / "images"

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class AuthConfig(BaseModel):
    """Authentication configuration."""

    enabled: bool = True
    registration_enabled: bool = True
    email_verification_required: bool = False
    auth_rate_limit_per_minute: int = 30
    # Alcohol bookings require this age on the booking date
    minimum_age: int = 21


class EmailConfig(BaseModel):
    """Email configuration."""

    backend: Literal["console", "ses"] = "console"
    from_address: str = "bookings@winetrail.app"
    from_name: str = "WineTrail"
    frontend_url: str = "http://localhost:3000"
    aws_region: str = "us-west-2"


class AnalyticsConfig(BaseModel):
    """Analytics configuration."""

    posthog_enabled: bool = False
    posthog_host: str = "https://us.posthog.com"
    posthog_debug: bool = False


class PaymentsConfig(BaseModel):
    """Stripe Checkout configuration."""

    currency: str = "usd"
    success_path: str = "/itinerary?success=true"
    cancel_path: str = "/itinerary?cancel=true"


class GeocodingConfig(BaseModel):
    """Geocoding proxy configuration (Nominatim with Google Places fallback)."""

    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "WineTrail/0.3"
    country_codes: str = "us"
    result_limit: int = 10
    google_places_base_url: str = "https://maps.googleapis.com/maps/api/place"
    timeout_seconds: float = 10.0


class WinetrailConfig(BaseModel):
    """Main WineTrail configuration loaded from config.toml."""

    app_name: str = "WineTrail"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    payments: PaymentsConfig = Field(default_factory=PaymentsConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    google_places_api_key: str | None = None
    imgbb_api_key: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    posthog_api_key: str | None = None
