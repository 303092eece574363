"""Pydantic schemas for winery listings."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from winetrail.models.winery import (
    Amenities,
    ContactInfo,
    Location,
    PaymentMethod,
    TastingInfo,
    Transportation,
    UserReview,
    Winery,
    coerce_payment_method,
)


class WineryBase(BaseModel):
    """Listing fields an owner can submit."""

    name: str = Field("", max_length=255)
    description: str = ""
    location: Location = Field(default_factory=Location)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    tasting_info: list[TastingInfo] = Field(default_factory=list)
    amenities: Amenities = Field(default_factory=Amenities)
    transportation: Transportation = Field(default_factory=Transportation)
    payment_method: PaymentMethod = Field(default_factory=PaymentMethod)

    @field_validator("payment_method", mode="before")
    @classmethod
    def upgrade_legacy_payment_method(cls, v: Any) -> Any:
        return coerce_payment_method(v)


class WineryCreate(WineryBase):
    pass


class WineryUpdate(BaseModel):
    """Partial update; only the fields sent are replaced."""

    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    location: Optional[Location] = None
    contact_info: Optional[ContactInfo] = None
    tasting_info: Optional[list[TastingInfo]] = None
    amenities: Optional[Amenities] = None
    transportation: Optional[Transportation] = None
    payment_method: Optional[PaymentMethod] = None

    @field_validator("payment_method", mode="before")
    @classmethod
    def upgrade_legacy_payment_method(cls, v: Any) -> Any:
        return coerce_payment_method(v) if v is not None else None


class WineryResponse(WineryBase):
    id: str
    owner_id: Optional[str] = None
    user_reviews: list[UserReview] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_winery(cls, winery: Winery) -> "WineryResponse":
        data = winery.model_dump(exclude={"id", "owner_id", "revision_id"})
        return cls(
            id=str(winery.id),
            owner_id=str(winery.owner_id) if winery.owner_id else None,
            **data,
        )


class SlotDay(BaseModel):
    """Bookable times on one date of a tasting."""

    date: str
    times: list[str]
    weekend: bool = False


class TastingSlotsResponse(BaseModel):
    tasting_index: int
    max_guests_per_slot: int
    weekend_premium_percent: Optional[int] = None
    days: list[SlotDay]


class FoodPairingRequest(BaseModel):
    name: str
    price: float = 0


class WineRequest(BaseModel):
    name: str
    description: str
    year: Optional[int] = None
    tasting_notes: str = ""
    photo: Optional[str] = None


class TourRequest(BaseModel):
    description: str
    cost: Optional[float] = None


class OtherFeatureRequest(BaseModel):
    description: str
    cost: float = 0


class SlotsRequest(BaseModel):
    slots: list[datetime]


class ExternalLinkRequest(BaseModel):
    external_booking_link: str = ""
