"""Address lookup proxy for listing and pickup addresses."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from winetrail.services.errors import GeocodingError
from winetrail.services.geocoding import GeocodingService, get_geocoding_service

logger = logging.getLogger(__name__)

router = APIRouter()

Geocoder = Annotated[GeocodingService, Depends(get_geocoding_service)]


class ManualGeocodeRequest(BaseModel):
    address: str = Field(..., min_length=1)


class GeocodeResult(BaseModel):
    lat: float
    lon: float
    address: str


async def search(geocoder: Geocoder, q: Annotated[str, Query(min_length=1)]) -> list[dict[str, Any]]:
    """Raw Nominatim search results."""
    try:
        return await geocoder.nominatim_search(q)
    except GeocodingError as e:
        raise e.to_http() from e


async def suggest(geocoder: Geocoder, q: Annotated[str, Query(min_length=1)]) -> list[dict[str, Any]]:
    """Address suggestions from Nominatim, falling back to Google Places."""
    try:
        return await geocoder.suggest(q)
    except GeocodingError as e:
        raise e.to_http() from e


async def geocode(geocoder: Geocoder, place_id: str) -> GeocodeResult:
    try:
        result = await geocoder.google_geocode(place_id)
    except GeocodingError as e:
        raise e.to_http() from e
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return GeocodeResult(**result)


async def reverse(
    geocoder: Geocoder,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lon: Annotated[float, Query(ge=-180, le=180)],
) -> dict[str, Any]:
    try:
        return await geocoder.reverse(lat, lon)
    except GeocodingError as e:
        raise e.to_http() from e


async def manual_geocode(geocoder: Geocoder, body: ManualGeocodeRequest) -> GeocodeResult:
    """Best-effort coordinates for an address typed by hand."""
    try:
        result = await geocoder.manual_geocode(body.address)
    except GeocodingError as e:
        raise e.to_http() from e
    return GeocodeResult(**result)


router.add_api_route("/search", search, methods=["GET"])
router.add_api_route("/suggest", suggest, methods=["GET"])
router.add_api_route("/geocode", geocode, methods=["GET"])
router.add_api_route("/reverse", reverse, methods=["GET"])
router.add_api_route("/manual-geocode", manual_geocode, methods=["POST"])
