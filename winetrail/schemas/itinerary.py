"""Pydantic schemas for itineraries and bookings."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from winetrail.models.booking import BookedWinery, Booking, BookingStatus
from winetrail.models.itinerary import BookingDetails, Itinerary, ItineraryItem
from winetrail.models.winery import PaymentType


class ItineraryAddRequest(BaseModel):
    winery_id: str
    booking_details: Optional[BookingDetails] = None


class SlotSelectionRequest(BaseModel):
    slot: str
    tasting_index: int = Field(0, ge=0)
    number_of_people: int = Field(0, ge=0)
    food_pairing: Optional[str] = None


class ItineraryItemResponse(BaseModel):
    winery_id: str
    winery_name: str
    location: dict
    payment_method: dict
    booking_details: BookingDetails

    @classmethod
    def from_item(cls, item: ItineraryItem) -> "ItineraryItemResponse":
        return cls(
            winery_id=str(item.winery_id),
            winery_name=item.winery_name,
            location=item.location.model_dump(),
            payment_method=item.payment_method.model_dump(mode="json"),
            booking_details=item.booking_details,
        )


class ItineraryResponse(BaseModel):
    items: list[ItineraryItemResponse]
    updated_at: datetime

    @classmethod
    def from_itinerary(cls, itinerary: Itinerary) -> "ItineraryResponse":
        return cls(
            items=[ItineraryItemResponse.from_item(item) for item in itinerary.items],
            updated_at=itinerary.updated_at,
        )


class BookingResponse(BaseModel):
    id: str
    user_id: str
    wineries: list[BookedWinery]
    payment_type: PaymentType
    status: BookingStatus
    external_booking_url: Optional[str] = None
    total_amount: float
    currency: str
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=str(booking.id),
            user_id=str(booking.user_id),
            wineries=booking.wineries,
            payment_type=booking.payment_type,
            status=booking.status,
            external_booking_url=booking.external_booking_url,
            total_amount=booking.total_amount,
            currency=booking.currency,
            created_at=booking.created_at,
        )


class ConfirmationResponse(BaseModel):
    """Outcome of confirming an itinerary.

    ``checkout`` carries the Stripe session to redirect to, ``external``
    the third-party booking URL, ``confirmed`` nothing further.
    """

    action: Literal["checkout", "external", "confirmed"]
    booking: BookingResponse
    session_id: Optional[str] = None
    checkout_url: Optional[str] = None
    url: Optional[str] = None


class RideLinkResponse(BaseModel):
    service: str
    url: str
