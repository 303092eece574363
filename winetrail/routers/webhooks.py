"""Stripe webhook receiver."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request

from winetrail.services.booking import handle_stripe_event
from winetrail.services.errors import PaymentError
from winetrail.services.payments import StripeService, get_stripe_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def stripe_webhook(
    request: Request,
    stripe_service: Annotated[StripeService, Depends(get_stripe_service)],
    stripe_signature: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Verify a Stripe event and settle the booking it refers to."""
    payload = await request.body()
    try:
        event = stripe_service.construct_event(payload, stripe_signature)
    except PaymentError as e:
        raise e.to_http() from e

    booking = await handle_stripe_event(event)
    return {
        "received": True,
        "booking_id": str(booking.id) if booking is not None else None,
    }


router.add_api_route("/webhook", stripe_webhook, methods=["POST"])
