"""Services for the WineTrail application."""

from winetrail.services.geocoding import GeocodingService
from winetrail.services.image_storage import ImageStorageService
from winetrail.services.payments import StripeService

__all__ = ["GeocodingService", "ImageStorageService", "StripeService"]
