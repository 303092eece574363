"""Booking document model for confirmed and pending itineraries."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field

from winetrail.models.itinerary import FeatureSelection, FoodPairingSelection
from winetrail.models.winery import Location, PaymentType


class BookingStatus(str, Enum):
    """Lifecycle of a booking."""

    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BookedWinery(BaseModel):
    """Embedded subdocument for one winery visit within a booking."""

    winery_id: PydanticObjectId
    winery_name: str
    location: Location = Field(default_factory=Location)
    date_time: Optional[str] = None
    tasting_index: int = 0
    tasting_title: Optional[str] = None
    # Tasting price when the tasting was selected and is not free
    tasting: Optional[float] = None
    number_of_people: int = 1
    food_pairings: list[FoodPairingSelection] = Field(default_factory=list)
    tours: list[FeatureSelection] = Field(default_factory=list)
    other_features: list[FeatureSelection] = Field(default_factory=list)
    payment_type: PaymentType = PaymentType.PAY_WINERY
    subtotal: float = 0


class Booking(Document):
    """A confirmed (or awaiting payment) multi-winery booking."""

    user_id: Indexed(PydanticObjectId)
    wineries: list[BookedWinery] = Field(default_factory=list)
    payment_type: PaymentType = PaymentType.PAY_WINERY
    status: BookingStatus = BookingStatus.CONFIRMED

    stripe_session_id: Optional[Indexed(str)] = None
    external_booking_url: Optional[str] = None
    total_amount: float = 0
    currency: str = "usd"

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "bookings"
        indexes = [
            "user_id",
            "stripe_session_id",
            "wineries.winery_id",
        ]

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status={self.status}, wineries={len(self.wineries)})>"
