"""Per-user itinerary of wineries awaiting confirmation."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field

from winetrail.models.winery import Location, PaymentMethod


class FoodPairingSelection(BaseModel):
    name: str
    price: float = 0


class FeatureSelection(BaseModel):
    """A selected tour or other paid feature."""

    description: str
    price: float = 0


class BookingDetails(BaseModel):
    """What the visitor picked at one winery."""

    selected_date: Optional[str] = None  # YYYY-MM-DD (UTC)
    selected_time: Optional[str] = None  # ISO-8601 slot
    selected_tasting_index: int = Field(default=0, ge=0)
    number_of_people: int = Field(default=1, ge=0)
    tasting: bool = True
    food_pairings: list[FoodPairingSelection] = Field(default_factory=list)
    tours: list[FeatureSelection] = Field(default_factory=list)
    other_features: list[FeatureSelection] = Field(default_factory=list)


class ItineraryItem(BaseModel):
    """A winery in the itinerary, with a snapshot of the fields routing needs."""

    winery_id: PydanticObjectId
    winery_name: str
    location: Location = Field(default_factory=Location)
    payment_method: PaymentMethod = Field(default_factory=PaymentMethod)
    booking_details: BookingDetails = Field(default_factory=BookingDetails)


class Itinerary(Document):
    """The signed-in user's working itinerary."""

    user_id: Indexed(PydanticObjectId, unique=True)
    items: list[ItineraryItem] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "itineraries"

    def find_item(self, winery_id: PydanticObjectId) -> ItineraryItem | None:
        for item in self.items:
            if item.winery_id == winery_id:
                return item
        return None
