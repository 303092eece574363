"""PostHog analytics service for WineTrail.

Server-side tracking of registrations, logins and bookings.
"""

import logging
from typing import Any

import posthog

from winetrail.config import settings

logger = logging.getLogger(__name__)


class PostHogService:
    """PostHog analytics service.

    All methods are no-ops if PostHog is not configured or disabled.
    """

    def __init__(self) -> None:
        self._client: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> bool:
        """Lazily configure the PostHog module client.

        Returns:
            True if client is available and ready.
        """
        if self._initialized:
            return self._client is not None

        self._initialized = True

        if not self.is_available():
            logger.debug("PostHog analytics disabled or not configured")
            return False

        posthog.project_api_key = settings.posthog_api_key
        posthog.host = settings.posthog_host
        posthog.debug = settings.posthog_debug
        posthog.sync_mode = False

        self._client = posthog
        logger.info(
            "PostHog analytics initialized (host=%s, debug=%s)",
            settings.posthog_host,
            settings.posthog_debug,
        )
        return True

    def is_available(self) -> bool:
        """True if PostHog is enabled and an API key is set."""
        return settings.posthog_enabled and bool(settings.posthog_api_key)

    def capture(
        self,
        distinct_id: str,
        event: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Capture an analytics event.

        Args:
            distinct_id: Unique identifier for the user (typically user ID).
            event: Event name (e.g., "user_login", "booking_confirmed").
            properties: Optional dictionary of event properties.
        """
        if not self._ensure_initialized():
            return

        try:
            self._client.capture(
                distinct_id=distinct_id,
                event=event,
                properties=properties or {},
            )
        except Exception as e:
            logger.error("Failed to capture PostHog event %s: %s", event, e)

    def identify(
        self,
        distinct_id: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        if not self._ensure_initialized():
            return

        try:
            self._client.identify(
                distinct_id=distinct_id,
                properties=properties or {},
            )
        except Exception as e:
            logger.error("Failed to identify PostHog user: %s", e)

    def reset(self) -> None:
        """Forget the cached client so the next call re-reads settings."""
        self._client = None
        self._initialized = False

    def shutdown(self) -> None:
        """Flush pending events and shut the client down."""
        if not self._initialized or self._client is None:
            return

        try:
            self._client.flush()
            self._client.shutdown()
            logger.info("PostHog client shutdown complete")
        except Exception as e:
            logger.error("Error during PostHog shutdown: %s", e)


posthog_service = PostHogService()
