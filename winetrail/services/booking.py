"""Booking confirmation and payment routing.

Confirming an itinerary takes one of three routes, in priority order:

1. Stripe Checkout, when any winery takes card payment online.
2. An external booking site, when a winery (or its selected tasting)
   hands booking off to a third party.
3. Pay at the winery, confirmed immediately.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlsplit

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import status

from winetrail.config import settings
from winetrail.models.booking import BookedWinery, Booking, BookingStatus
from winetrail.models.itinerary import Itinerary, ItineraryItem
from winetrail.models.user import User
from winetrail.models.winery import PaymentType, Winery
from winetrail.services.analytics import posthog_service
from winetrail.services.auth import verify_booking_age
from winetrail.services.email import get_email_service
from winetrail.services.errors import ItineraryError
from winetrail.services.payments import StripeService
from winetrail.services.pricing import tasting_price_for_slot, to_minor_units, winery_total

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = [BookingStatus.PENDING_PAYMENT, BookingStatus.CONFIRMED]

INVALID_EXTERNAL_LINK = (
    "Invalid external booking link. Please contact the winery for booking information."
)
NO_PAYABLE_ITEMS = "No items selected for payment. Please add a tasting or food pairing."


async def load_wineries(itinerary: Itinerary) -> dict[PydanticObjectId, Winery]:
    """Fetch the current listing for every winery in the itinerary."""
    wineries: dict[PydanticObjectId, Winery] = {}
    for item in itinerary.items:
        winery = await Winery.get(item.winery_id)
        if winery is None:
            raise ItineraryError(
                f"{item.winery_name} is no longer listed. Please remove it from your itinerary.",
                status_code=status.HTTP_409_CONFLICT,
            )
        wineries[item.winery_id] = winery
    return wineries


def booked_winery(item: ItineraryItem, winery: Winery) -> BookedWinery:
    details = item.booking_details
    tasting = winery.tasting(details.selected_tasting_index)

    tasting_price = None
    if details.tasting and tasting is not None:
        tasting_price = tasting_price_for_slot(tasting, details.selected_time) or None

    return BookedWinery(
        winery_id=winery.id,
        winery_name=winery.name,
        location=winery.location,
        date_time=details.selected_time or None,
        tasting_index=details.selected_tasting_index,
        tasting_title=tasting.tasting_title if tasting else None,
        tasting=tasting_price,
        number_of_people=details.number_of_people or 1,
        food_pairings=details.food_pairings,
        tours=details.tours,
        other_features=details.other_features,
        payment_type=winery.payment_method.type,
        subtotal=winery_total(details, winery),
    )


async def booked_guests(winery_id: PydanticObjectId, tasting_index: int, slot: str) -> int:
    """Guests already holding the slot across pending and confirmed bookings."""
    bookings = await Booking.find(
        {"wineries.winery_id": winery_id, "status": {"$in": [s.value for s in ACTIVE_STATUSES]}}
    ).to_list()

    guests = 0
    for booking in bookings:
        for visit in booking.wineries:
            if (
                visit.winery_id == winery_id
                and visit.tasting_index == tasting_index
                and visit.date_time == slot
            ):
                guests += visit.number_of_people
    return guests


async def check_capacity(visits: list[BookedWinery], wineries: dict[PydanticObjectId, Winery]) -> None:
    for visit in visits:
        tasting = wineries[visit.winery_id].tasting(visit.tasting_index)
        if not visit.date_time or tasting is None:
            continue
        cap = tasting.booking_info.max_guests_per_slot
        if cap <= 0:
            continue

        taken = await booked_guests(visit.winery_id, visit.tasting_index, visit.date_time)
        if taken + visit.number_of_people > cap:
            raise ItineraryError(
                f"{visit.winery_name} has only {max(cap - taken, 0)} places left at the selected time.",
                status_code=status.HTTP_409_CONFLICT,
            )


def stripe_line_items(
    visits: list[BookedWinery],
    currency: str,
) -> list[dict[str, Any]]:
    """One Checkout line item per card-paying winery with something to pay."""
    items = []
    for visit in visits:
        if visit.payment_type != PaymentType.PAY_STRIPE or visit.subtotal <= 0:
            continue
        items.append(
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {
                        "name": f"{visit.winery_name} - {visit.tasting_title or 'Booking'} (Tasting & Food Pairings)",
                    },
                    "unit_amount": to_minor_units(visit.subtotal),
                },
                "quantity": 1,
            }
        )
    return items


def normalize_external_link(link: Optional[str]) -> Optional[str]:
    """Turn an owner-entered booking link into an absolute URL.

    Returns None for blank or placeholder links.

    Raises:
        ItineraryError: for site-relative links, which cannot be followed.
    """
    if not link or link.strip() in ("", "#"):
        return None

    link = link.strip()
    parts = urlsplit(link)
    if parts.scheme and parts.netloc:
        return link
    if link.startswith("/"):
        raise ItineraryError(INVALID_EXTERNAL_LINK)
    return link if link.startswith("http") else f"https://{link}"


def external_booking_link(itinerary: Itinerary, wineries: dict[PydanticObjectId, Winery]) -> Optional[str]:
    """Normalised link of the first winery that books through a third party.

    Placeholder links are skipped, so a ``#`` on the payment method falls back
    to the tasting's own link and then to the next winery.
    """
    for item in itinerary.items:
        winery = wineries[item.winery_id]
        tasting = winery.tasting(item.booking_details.selected_tasting_index)
        candidates = [tasting.booking_info.external_booking_link if tasting else ""]
        if winery.payment_method.type == PaymentType.EXTERNAL_BOOKING:
            candidates.insert(0, winery.payment_method.external_booking_link)
        for link in candidates:
            url = normalize_external_link(link)
            if url is not None:
                return url
    return None


def _new_booking(user: User, visits: list[BookedWinery], payment_type: PaymentType) -> Booking:
    return Booking(
        user_id=user.id,
        wineries=visits,
        payment_type=payment_type,
        total_amount=sum(visit.subtotal for visit in visits),
        currency=settings.payment_currency,
    )


async def complete_booking(booking: Booking, user: Optional[User] = None) -> Booking:
    """Mark a booking confirmed, empty the itinerary and email the user."""
    booking.status = BookingStatus.CONFIRMED
    booking.updated_at = datetime.now(timezone.utc)
    await booking.save()

    itinerary = await Itinerary.find_one(Itinerary.user_id == booking.user_id)
    if itinerary is not None:
        itinerary.items = []
        itinerary.updated_at = datetime.now(timezone.utc)
        await itinerary.save()

    user = user or await User.get(booking.user_id)
    if user is not None:
        sent = await get_email_service().send_booking_confirmation_email(user.email, booking)
        if not sent:
            logger.error("Failed to send booking confirmation for booking %s", booking.id)

    posthog_service.capture(
        distinct_id=str(booking.user_id),
        event="booking_confirmed",
        properties={
            "payment_type": booking.payment_type.value,
            "wineries": len(booking.wineries),
            "total_amount": booking.total_amount,
        },
    )
    logger.info("Booking %s confirmed via %s", booking.id, booking.payment_type.value)
    return booking


async def confirm_itinerary(
    user: User,
    itinerary: Itinerary,
    stripe_service: StripeService,
) -> dict[str, Any]:
    """Confirm the user's itinerary and route payment.

    Returns:
        ``{"action": "checkout", "session_id", "checkout_url", "booking"}``,
        ``{"action": "external", "url", "booking"}`` or
        ``{"action": "confirmed", "booking"}``.
    """
    verify_booking_age(user)

    if not itinerary.items:
        raise ItineraryError("Your itinerary is empty")

    wineries = await load_wineries(itinerary)
    visits = [booked_winery(item, wineries[item.winery_id]) for item in itinerary.items]
    await check_capacity(visits, wineries)

    if any(visit.payment_type == PaymentType.PAY_STRIPE for visit in visits):
        return await _checkout(user, visits, stripe_service)

    url = external_booking_link(itinerary, wineries)
    if url is not None:
        booking = _new_booking(user, visits, PaymentType.EXTERNAL_BOOKING)
        booking.external_booking_url = url
        await booking.insert()
        await complete_booking(booking, user)
        return {"action": "external", "url": url, "booking": booking}

    booking = _new_booking(user, visits, PaymentType.PAY_WINERY)
    await booking.insert()
    await complete_booking(booking, user)
    return {"action": "confirmed", "booking": booking}


async def _checkout(
    user: User,
    visits: list[BookedWinery],
    stripe_service: StripeService,
) -> dict[str, Any]:
    line_items = stripe_line_items(visits, settings.payment_currency)
    if not line_items:
        raise ItineraryError(NO_PAYABLE_ITEMS)

    booking = _new_booking(user, visits, PaymentType.PAY_STRIPE)
    booking.status = BookingStatus.PENDING_PAYMENT
    await booking.insert()

    try:
        session = await stripe_service.create_checkout_session(
            line_items=line_items,
            success_url=settings.checkout_success_url,
            cancel_url=settings.checkout_cancel_url,
            metadata={"booking_id": str(booking.id), "user_id": str(user.id)},
            customer_email=user.email,
        )
    except Exception:
        await booking.delete()
        raise

    booking.stripe_session_id = session.id
    await booking.save()
    return {
        "action": "checkout",
        "session_id": session.id,
        "checkout_url": session.url,
        "booking": booking,
    }


async def _booking_for_session(session: Any) -> Optional[Booking]:
    metadata = session.get("metadata") or {}
    booking_id = metadata.get("booking_id")
    if booking_id:
        try:
            booking = await Booking.get(PydanticObjectId(booking_id))
        except (InvalidId, TypeError):
            booking = None
        if booking is not None:
            return booking
    return await Booking.find_one(Booking.stripe_session_id == session.get("id"))


async def handle_stripe_event(event: Any) -> Optional[Booking]:
    """Apply a verified Checkout webhook event to its booking.

    ``checkout.session.completed`` confirms the booking and
    ``checkout.session.expired`` cancels it. Other events are ignored.
    """
    event_type = event.get("type")
    if event_type not in ("checkout.session.completed", "checkout.session.expired"):
        logger.debug("Ignoring Stripe event %s", event_type)
        return None

    session = (event.get("data") or {}).get("object")
    if not session:
        logger.warning("Stripe event %s has no session object; ignoring", event_type)
        return None

    booking = await _booking_for_session(session)
    if booking is None:
        logger.warning("Stripe event %s for unknown session %s", event_type, session.get("id"))
        return None

    if booking.status != BookingStatus.PENDING_PAYMENT:
        logger.info("Booking %s already %s; ignoring %s", booking.id, booking.status.value, event_type)
        return booking

    if event_type == "checkout.session.completed":
        return await complete_booking(booking)

    booking.status = BookingStatus.CANCELLED
    booking.updated_at = datetime.now(timezone.utc)
    await booking.save()
    logger.info("Booking %s cancelled: checkout session expired", booking.id)
    return booking
