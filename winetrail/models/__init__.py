"""MongoDB document models for WineTrail."""

from winetrail.models.booking import BookedWinery, Booking, BookingStatus
from winetrail.models.itinerary import (
    BookingDetails,
    FeatureSelection,
    FoodPairingSelection,
    Itinerary,
    ItineraryItem,
)
from winetrail.models.security import LoginAttempt, RevokedToken
from winetrail.models.user import User
from winetrail.models.winery import (
    Amenities,
    BookingInfo,
    ContactInfo,
    DynamicPricing,
    FoodPairingOption,
    Location,
    OtherFeature,
    PaymentMethod,
    PaymentType,
    TastingInfo,
    TourOption,
    Tours,
    Transportation,
    UserReview,
    WineDetail,
    Winery,
)

__all__ = [
    # Main documents
    "Winery",
    "User",
    "Itinerary",
    "Booking",
    "RevokedToken",
    "LoginAttempt",
    # Winery subdocuments
    "Amenities",
    "BookingInfo",
    "ContactInfo",
    "DynamicPricing",
    "FoodPairingOption",
    "Location",
    "OtherFeature",
    "PaymentMethod",
    "PaymentType",
    "TastingInfo",
    "TourOption",
    "Tours",
    "Transportation",
    "UserReview",
    "WineDetail",
    # Itinerary / booking subdocuments
    "BookingDetails",
    "FeatureSelection",
    "FoodPairingSelection",
    "ItineraryItem",
    "BookedWinery",
    "BookingStatus",
]
