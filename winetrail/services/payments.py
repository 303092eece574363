"""Stripe Checkout integration."""

import asyncio
import json
import logging
from typing import Any, Optional

import stripe
from fastapi import status

from winetrail.config import settings
from winetrail.services.errors import PaymentError

logger = logging.getLogger(__name__)


class StripeService:
    """Thin async wrapper over the Stripe SDK.

    The SDK is synchronous; calls run in a worker thread.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )
        if not self.api_key:
            logger.warning("Stripe secret key not set; card payments are disabled")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _require(self) -> None:
        if not self.is_available():
            raise PaymentError(
                "Payment processing is currently unavailable. Please try again later or contact support.",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

    async def create_checkout_session(
        self,
        line_items: list[dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: Optional[dict[str, str]] = None,
        customer_email: Optional[str] = None,
    ) -> Any:
        """Create a one-off payment Checkout session.

        Returns:
            The Stripe ``checkout.Session`` object (``id`` and ``url``).

        Raises:
            PaymentError: 503 when Stripe is not configured, 502 when the
                API call fails.
        """
        self._require()

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create, api_key=self.api_key, **params
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session creation failed: %s", e)
            raise PaymentError("Failed to initialize payment. Please try again.") from e

        logger.info("Stripe checkout session created: %s", session.id)
        return session

    def construct_event(self, payload: bytes, signature: Optional[str]) -> dict[str, Any]:
        """Verify a webhook payload and return the event as a plain dict.

        Raises:
            PaymentError: 503 without a webhook secret, 400 on a bad
                payload or signature.
        """
        if not self.webhook_secret:
            raise PaymentError(
                "Stripe webhooks are not configured",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        if not signature:
            raise PaymentError("Missing Stripe signature", status_code=status.HTTP_400_BAD_REQUEST)

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret)
            return json.loads(body)
        except ValueError as e:
            raise PaymentError("Invalid payload", status_code=status.HTTP_400_BAD_REQUEST) from e
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe webhook signature verification failed")
            raise PaymentError("Invalid signature", status_code=status.HTTP_400_BAD_REQUEST) from e


_stripe_service: StripeService | None = None


def get_stripe_service() -> StripeService:
    """FastAPI dependency returning the shared Stripe service."""
    global _stripe_service
    if _stripe_service is None:
        _stripe_service = StripeService()
    return _stripe_service
