"""Configuration loader for WineTrail.

Loads configuration from TOML files and secrets from .env files.
Environment variables can override any configuration value.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from winetrail.config.schema import SecretsConfig, WinetrailConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "WINETRAIL"

_INT_KEYS = {
    "port",
    "workers",
    "rate_limit_per_minute",
    "max_upload_mb",
    "auth_rate_limit_per_minute",
    "minimum_age",
    "result_limit",
}
_FLOAT_KEYS = {"timeout_seconds"}
_BOOL_KEYS = {
    "debug",
    "enforce_https",
    "enabled",
    "registration_enabled",
    "email_verification_required",
    "posthog_enabled",
    "posthog_debug",
}

# Secret file/env keys -> SecretsConfig fields
_SECRET_KEYS = {
    f"{ENV_PREFIX}_SECRET_KEY": "secret_key",
    f"{ENV_PREFIX}_STRIPE_SECRET_KEY": "stripe_secret_key",
    f"{ENV_PREFIX}_STRIPE_WEBHOOK_SECRET": "stripe_webhook_secret",
    f"{ENV_PREFIX}_GOOGLE_PLACES_API_KEY": "google_places_api_key",
    f"{ENV_PREFIX}_IMGBB_API_KEY": "imgbb_api_key",
    "AWS_ACCESS_KEY_ID": "aws_access_key_id",
    "AWS_SECRET_ACCESS_KEY": "aws_secret_access_key",
    f"{ENV_PREFIX}_POSTHOG_API_KEY": "posthog_api_key",
}


def _search_paths(filename: str) -> list[Path]:
    return [
        # Project root
        Path.cwd() / filename,
        # User config directory
        Path.home() / ".config" / "winetrail" / filename,
        # Production install directory
        Path("/opt/winetrail") / filename,
        # System config (Linux FHS)
        Path("/etc/winetrail") / filename,
    ]


def get_config_search_paths() -> list[Path]:
    """Get the list of paths to search for configuration files.

    Returns paths in priority order (first found wins):
    1. ./config.toml (project root - for development)
    2. ~/.config/winetrail/config.toml (user config)
    3. /opt/winetrail/config.toml (production install)
    4. /etc/winetrail/config.toml (system config)
    """
    return _search_paths("config.toml")


def get_secrets_search_paths() -> list[Path]:
    """Get the list of paths to search for secrets files, in the same order."""
    return _search_paths("secrets.env")


def find_config_file() -> Path | None:
    """Find the first existing config file from search paths."""
    for path in get_config_search_paths():
        if path.exists() and path.is_file():
            logger.debug("Found config file: %s", path)
            return path
    return None


def find_secrets_file() -> Path | None:
    """Find the first existing secrets file from search paths."""
    for path in get_secrets_search_paths():
        if path.exists() and path.is_file():
            logger.debug("Found secrets file: %s", path)
            return path
    return None


def load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a simple .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - # comments
    - Empty lines
    """
    env_vars: dict[str, str] = {}

    with open(path) as f:
        for line in f:
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            # Split on first =
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes if present
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            env_vars[key] = value

    return env_vars


def _coerce(key: str, value: str) -> Any:
    if key in _INT_KEYS:
        return int(value)
    if key in _FLOAT_KEYS:
        return float(value)
    if key in _BOOL_KEYS:
        return value.lower() in ("true", "1", "yes")
    if key == "cors_origins":
        return [origin.strip() for origin in value.split(",") if origin.strip()]
    return value


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> None:
    """Apply environment variable overrides to configuration dictionary.

    Environment variables are mapped as follows:
    - WINETRAIL_SERVER_HOST -> config_dict["server"]["host"]
    - WINETRAIL_MONGODB_URL -> config_dict["database"]["mongodb_url"]
    - etc.

    Note: This modifies config_dict in place.
    """
    # Map of env var names to config paths
    env_mappings = {
        # Server
        f"{prefix}_SERVER_HOST": ("server", "host"),
        f"{prefix}_SERVER_PORT": ("server", "port"),
        f"{prefix}_SERVER_WORKERS": ("server", "workers"),
        f"{prefix}_SERVER_DEBUG": ("server", "debug"),
        f"{prefix}_SERVER_ENFORCE_HTTPS": ("server", "enforce_https"),
        f"{prefix}_CORS_ORIGINS": ("server", "cors_origins"),
        f"{prefix}_DEBUG": ("server", "debug"),  # Shorthand
        f"{prefix}_HOST": ("server", "host"),  # Shorthand
        f"{prefix}_PORT": ("server", "port"),  # Shorthand
        # Database
        f"{prefix}_DATABASE_MONGODB_URL": ("database", "mongodb_url"),
        f"{prefix}_DATABASE_MONGODB_DATABASE": ("database", "mongodb_database"),
        f"{prefix}_MONGODB_URL": ("database", "mongodb_url"),  # Shorthand
        f"{prefix}_MONGODB_DATABASE": ("database", "mongodb_database"),  # Shorthand
        # Storage
        f"{prefix}_STORAGE_DATA_DIR": ("storage", "data_dir"),
        f"{prefix}_STORAGE_LOG_DIR": ("storage", "log_dir"),
        f"{prefix}_STORAGE_MAX_UPLOAD_MB": ("storage", "max_upload_mb"),
        f"{prefix}_IMAGE_BACKEND": ("storage", "image_backend"),
        # Auth
        f"{prefix}_AUTH_ENABLED": ("auth", "enabled"),
        f"{prefix}_AUTH_REGISTRATION_ENABLED": ("auth", "registration_enabled"),
        f"{prefix}_AUTH_EMAIL_VERIFICATION_REQUIRED": (
            "auth",
            "email_verification_required",
        ),
        f"{prefix}_AUTH_MINIMUM_AGE": ("auth", "minimum_age"),
        f"{prefix}_REGISTRATION_ENABLED": ("auth", "registration_enabled"),  # Shorthand
        # Email
        f"{prefix}_EMAIL_BACKEND": ("email", "backend"),
        f"{prefix}_EMAIL_FROM_ADDRESS": ("email", "from_address"),
        f"{prefix}_EMAIL_AWS_REGION": ("email", "aws_region"),
        f"{prefix}_FRONTEND_URL": ("email", "frontend_url"),
        # Analytics
        f"{prefix}_POSTHOG_ENABLED": ("analytics", "posthog_enabled"),
        f"{prefix}_POSTHOG_HOST": ("analytics", "posthog_host"),
        f"{prefix}_POSTHOG_DEBUG": ("analytics", "posthog_debug"),
        # Payments
        f"{prefix}_PAYMENTS_CURRENCY": ("payments", "currency"),
        # Geocoding
        f"{prefix}_NOMINATIM_BASE_URL": ("geocoding", "nominatim_base_url"),
        f"{prefix}_NOMINATIM_USER_AGENT": ("geocoding", "nominatim_user_agent"),
        f"{prefix}_GEOCODING_COUNTRY_CODES": ("geocoding", "country_codes"),
        f"{prefix}_GEOCODING_TIMEOUT_SECONDS": ("geocoding", "timeout_seconds"),
    }

    for env_var, path in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section, key = path
        # Ensure section exists
        config_dict.setdefault(section, {})
        config_dict[section][key] = _coerce(key, value)


def load_secrets(secrets_file: Path | None = None) -> SecretsConfig:
    """Load secrets from environment variables and optional secrets.env file.

    Environment variables take precedence over file values.
    """
    secrets_dict: dict[str, str | None] = {}

    if secrets_file is None:
        secrets_file = find_secrets_file()

    # Load from secrets file if found
    if secrets_file and secrets_file.exists():
        logger.info("Loading secrets from: %s", secrets_file)
        file_secrets = parse_env_file(secrets_file)

        # Map file keys to SecretsConfig fields
        for file_key, config_key in _SECRET_KEYS.items():
            if file_key in file_secrets:
                secrets_dict[config_key] = file_secrets[file_key]

    # Override with environment variables (takes precedence)
    env_mapping = dict(_SECRET_KEYS)
    env_mapping["STRIPE_SECRET_KEY"] = "stripe_secret_key"  # Also check common name
    env_mapping["STRIPE_WEBHOOK_SECRET"] = "stripe_webhook_secret"

    for env_var, config_key in env_mapping.items():
        value = os.environ.get(env_var)
        if value:
            secrets_dict[config_key] = value

    return SecretsConfig(**secrets_dict)


def load_config(config_file: Path | None = None) -> WinetrailConfig:
    """Load configuration from TOML file with environment variable overrides.

    Args:
        config_file: Optional path to config file. If not provided,
                     searches default locations.

    Returns:
        WinetrailConfig instance with all settings loaded.
    """
    config_dict: dict[str, Any] = {}

    # Find and load config file
    if config_file is None:
        config_file = find_config_file()

    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    # Apply environment variable overrides
    apply_env_overrides(config_dict)

    return WinetrailConfig(**config_dict)
