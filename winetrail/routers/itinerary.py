"""Itinerary editing, booking confirmation and ride links."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from winetrail.models.booking import Booking
from winetrail.models.itinerary import BookingDetails
from winetrail.routers._common import get_winery_or_404, parse_object_id
from winetrail.schemas.itinerary import (
    BookingResponse,
    ConfirmationResponse,
    ItineraryAddRequest,
    ItineraryResponse,
    RideLinkResponse,
    SlotSelectionRequest,
)
from winetrail.services import itinerary as itineraries
from winetrail.services.auth import RequireAuth
from winetrail.services.booking import confirm_itinerary
from winetrail.services.errors import WinetrailError
from winetrail.services.payments import StripeService, get_stripe_service
from winetrail.services.rides import ride_link

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_itinerary(current_user: RequireAuth) -> ItineraryResponse:
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    return ItineraryResponse.from_itinerary(itinerary)


async def clear_itinerary(current_user: RequireAuth) -> ItineraryResponse:
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    itineraries.clear(itinerary)
    await itineraries.save_itinerary(itinerary)
    return ItineraryResponse.from_itinerary(itinerary)


async def add_item(body: ItineraryAddRequest, current_user: RequireAuth) -> ItineraryResponse:
    """Add a winery to the caller's itinerary."""
    winery = await get_winery_or_404(body.winery_id)
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    try:
        itineraries.add_winery(itinerary, winery, body.booking_details)
    except WinetrailError as e:
        raise e.to_http() from e

    await itineraries.save_itinerary(itinerary)
    return ItineraryResponse.from_itinerary(itinerary)


async def select_slot(
    winery_id: str,
    body: SlotSelectionRequest,
    current_user: RequireAuth,
) -> ItineraryResponse:
    """Choose a date and time, adding the winery if it is not there yet."""
    winery = await get_winery_or_404(winery_id)
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    try:
        itineraries.select_slot(
            itinerary,
            winery,
            body.slot,
            tasting_index=body.tasting_index,
            number_of_people=body.number_of_people,
            food_pairing=body.food_pairing,
        )
    except WinetrailError as e:
        raise e.to_http() from e

    await itineraries.save_itinerary(itinerary)
    return ItineraryResponse.from_itinerary(itinerary)


async def update_item(
    winery_id: str,
    details: BookingDetails,
    current_user: RequireAuth,
) -> ItineraryResponse:
    winery = await get_winery_or_404(winery_id)
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    try:
        itineraries.update_details(itinerary, winery, details)
    except WinetrailError as e:
        raise e.to_http() from e

    await itineraries.save_itinerary(itinerary)
    return ItineraryResponse.from_itinerary(itinerary)


async def remove_item(winery_id: str, current_user: RequireAuth) -> ItineraryResponse:
    object_id = parse_object_id(winery_id)
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    try:
        itineraries.remove_winery(itinerary, object_id)
    except WinetrailError as e:
        raise e.to_http() from e

    await itineraries.save_itinerary(itinerary)
    return ItineraryResponse.from_itinerary(itinerary)


async def confirm(
    response: Response,
    current_user: RequireAuth,
    stripe_service: Annotated[StripeService, Depends(get_stripe_service)],
) -> ConfirmationResponse:
    """Confirm the itinerary.

    Responds 201 when the booking is confirmed outright and 200 when the
    client must continue on Stripe Checkout or an external booking site.
    """
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    try:
        result = await confirm_itinerary(current_user, itinerary, stripe_service)
    except WinetrailError as e:
        raise e.to_http() from e

    if result["action"] == "confirmed":
        response.status_code = status.HTTP_201_CREATED

    return ConfirmationResponse(
        action=result["action"],
        booking=BookingResponse.from_booking(result["booking"]),
        session_id=result.get("session_id"),
        checkout_url=result.get("checkout_url"),
        url=result.get("url"),
    )


async def list_bookings(current_user: RequireAuth) -> list[BookingResponse]:
    bookings = await Booking.find(Booking.user_id == current_user.id).sort(-Booking.created_at).to_list()
    return [BookingResponse.from_booking(b) for b in bookings]


async def get_ride_link(
    booking_id: str,
    current_user: RequireAuth,
    service: Literal["uber", "lyft"],
    lat: Annotated[float, Query(description="Pickup latitude")],
    lon: Annotated[float, Query(description="Pickup longitude")],
) -> RideLinkResponse:
    """Deep link for a ride to the first winery of a booking."""
    booking = await Booking.get(parse_object_id(booking_id, "Booking"))
    if booking is None or booking.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Booking with ID {booking_id} not found",
        )

    destination = booking.wineries[0].location if booking.wineries else None
    try:
        url = ride_link(service, lat, lon, destination)
    except WinetrailError as e:
        raise e.to_http() from e
    return RideLinkResponse(service=service, url=url)


async def get_itinerary_ride_link(
    current_user: RequireAuth,
    service: Literal["uber", "lyft"],
    lat: Annotated[float, Query(description="Pickup latitude")],
    lon: Annotated[float, Query(description="Pickup longitude")],
) -> RideLinkResponse:
    """Deep link for a ride to the earliest winery still in the itinerary."""
    itinerary = await itineraries.get_or_create_itinerary(current_user)
    if not itinerary.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Itinerary is empty")

    try:
        url = ride_link(service, lat, lon, itinerary.items[0].location)
    except WinetrailError as e:
        raise e.to_http() from e
    return RideLinkResponse(service=service, url=url)


router.add_api_route("", get_itinerary, methods=["GET"])
router.add_api_route("", clear_itinerary, methods=["DELETE"])
router.add_api_route("/items", add_item, methods=["POST"], status_code=201)
router.add_api_route("/items/{winery_id}", update_item, methods=["PUT"])
router.add_api_route("/items/{winery_id}", remove_item, methods=["DELETE"])
router.add_api_route("/items/{winery_id}/slot", select_slot, methods=["POST"])
router.add_api_route("/confirm", confirm, methods=["POST"])
router.add_api_route("/book", list_bookings, methods=["GET"])
router.add_api_route("/book/{booking_id}/ride", get_ride_link, methods=["GET"])
router.add_api_route("/ride", get_itinerary_ride_link, methods=["GET"])
