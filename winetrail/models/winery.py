"""Winery document model with embedded tasting packages."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field, field_validator


class PaymentType(str, Enum):
    """How a winery takes payment for bookings."""

    PAY_WINERY = "pay_winery"
    PAY_STRIPE = "pay_stripe"
    EXTERNAL_BOOKING = "external_booking"


class Location(BaseModel):
    """Embedded subdocument for the winery address and coordinates."""

    address: str = ""
    latitude: float = 0
    longitude: float = 0
    is_mountain_location: bool = False


class ContactInfo(BaseModel):
    """Embedded subdocument for contact details."""

    email: str = ""
    phone: str = ""
    website: str = ""


class FoodPairingOption(BaseModel):
    id: str = ""
    name: str
    price: float = 0


class TourOption(BaseModel):
    description: str
    cost: float = 0


class Tours(BaseModel):
    available: bool = False
    tour_price: float = 0
    tour_options: list[TourOption] = Field(default_factory=list)


class WineDetail(BaseModel):
    """A wine poured as part of a tasting."""

    id: str = ""
    name: str
    description: str = ""
    year: Optional[int] = None
    tasting_notes: str = ""
    photo: Optional[str] = None


class OtherFeature(BaseModel):
    description: str
    cost: float = 0


class DynamicPricing(BaseModel):
    enabled: bool = False
    weekend_multiplier: float = Field(default=1, ge=0)


def slot_iso(value: datetime | str) -> str:
    """Normalise a slot to the stored form, e.g. ``2030-06-01T15:00:00Z``.

    Naive values are taken as UTC. Raises ``ValueError`` for strings that
    are not ISO-8601 datetimes.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        raise TypeError(f"Unsupported slot value: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class BookingInfo(BaseModel):
    """Embedded subdocument describing how a tasting can be booked."""

    booking_enabled: bool = False
    max_guests_per_slot: int = Field(default=0, ge=0)
    # Party size bounds as [min, max]
    number_of_people: list[int] = Field(default_factory=lambda: [1, 10])
    dynamic_pricing: DynamicPricing = Field(default_factory=DynamicPricing)
    available_slots: list[str] = Field(default_factory=list)  # ISO-8601
    external_booking_link: str = ""

    @field_validator("available_slots", mode="before")
    @classmethod
    def normalise_slots(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        normalised = []
        for slot in v:
            try:
                normalised.append(slot_iso(slot))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid booking slot {slot!r}; expected an ISO-8601 datetime") from e
        return normalised


class TastingInfo(BaseModel):
    """Embedded subdocument for a single tasting package."""

    tasting_title: str = ""
    tasting_description: str = ""
    tasting_price: Optional[float] = 0
    available_times: list[str] = Field(default_factory=list)
    wine_types: list[str] = Field(default_factory=list)
    number_of_wines_per_tasting: Optional[int] = 1
    special_features: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    food_pairing_options: list[FoodPairingOption] = Field(default_factory=list)
    ava: str = ""
    tours: Tours = Field(default_factory=Tours)
    wine_details: list[WineDetail] = Field(default_factory=list)
    booking_info: BookingInfo = Field(default_factory=BookingInfo)
    other_features: list[OtherFeature] = Field(default_factory=list)


class Amenities(BaseModel):
    virtual_sommelier: bool = False
    augmented_reality_tours: bool = False
    handicap_accessible: bool = False


class UserReview(BaseModel):
    user_id: Optional[str] = None
    rating: float = Field(default=0, ge=0, le=5)
    comment: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Transportation(BaseModel):
    uber_availability: bool = False
    lyft_availability: bool = False
    distance_from_user: float = 0


class PaymentMethod(BaseModel):
    """Embedded subdocument selecting the booking payment route."""

    type: PaymentType = PaymentType.PAY_WINERY
    external_booking_link: str = ""


def coerce_payment_method(value: Any) -> Any:
    """Upgrade the legacy bare-string payment method to the structured form."""
    if isinstance(value, str):
        return {"type": value, "external_booking_link": ""}
    if value is None:
        return {"type": PaymentType.PAY_WINERY.value}
    return value


class Winery(Document):
    """Winery listing document."""

    # Owner reference for edit/delete authorisation
    owner_id: Optional[Indexed(PydanticObjectId)] = None

    name: Indexed(str)
    description: str = ""
    location: Location = Field(default_factory=Location)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    tasting_info: list[TastingInfo] = Field(default_factory=list)
    amenities: Amenities = Field(default_factory=Amenities)
    user_reviews: list[UserReview] = Field(default_factory=list)
    transportation: Transportation = Field(default_factory=Transportation)
    payment_method: PaymentMethod = Field(default_factory=PaymentMethod)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("payment_method", mode="before")
    @classmethod
    def upgrade_legacy_payment_method(cls, v: Any) -> Any:
        return coerce_payment_method(v)

    class Settings:
        name = "wineries"
        indexes = [
            "owner_id",
            "name",
        ]

    def tasting(self, index: int) -> TastingInfo | None:
        """Return the tasting at ``index`` or None when out of range."""
        if 0 <= index < len(self.tasting_info):
            return self.tasting_info[index]
        return None

    def __repr__(self) -> str:
        return f"<Winery(id={self.id}, name={self.name}, tastings={len(self.tasting_info)})>"
