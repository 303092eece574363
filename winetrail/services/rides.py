"""Uber and Lyft deep links to the first winery of a trip."""

import math
from typing import Literal, Optional
from urllib.parse import quote

from winetrail.models.winery import Location
from winetrail.services.errors import ItineraryError

RideService = Literal["uber", "lyft"]


def _usable(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value) and value != 0


def ride_link(
    service: RideService,
    pickup_latitude: float,
    pickup_longitude: float,
    destination: Optional[Location],
) -> str:
    """Build a ride-hailing deep link from the pickup to ``destination``.

    Raises:
        ItineraryError: for unusable pickup or winery coordinates.
    """
    if destination is None:
        raise ItineraryError("Winery location not available")
    if not (_usable(pickup_latitude) and _usable(pickup_longitude)):
        raise ItineraryError("Invalid location coordinates")
    if not (_usable(destination.latitude) and _usable(destination.longitude)):
        raise ItineraryError("Invalid winery location")

    pickup = f"pickup[latitude]={pickup_latitude}&pickup[longitude]={pickup_longitude}"
    if service == "uber":
        return (
            f"https://m.uber.com/ul/?action=setPickup&{pickup}"
            f"&dropoff[latitude]={destination.latitude}&dropoff[longitude]={destination.longitude}"
        )

    url = f"https://ride.lyft.com/?id=lyft&{pickup}"
    if destination.address:
        url += f"&destination={quote(destination.address, safe='')}"
    return url
