"""Public winery browsing and listing creation."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from winetrail.models.winery import Winery
from winetrail.routers._common import get_winery_or_404
from winetrail.schemas.winery import (
    SlotDay,
    TastingSlotsResponse,
    WineryCreate,
    WineryResponse,
)
from winetrail.services.auth import RequireAuth
from winetrail.services.errors import ListingValidationError
from winetrail.services.filters import WINE_TYPES, Filters, apply_filters
from winetrail.services.listing import get_tasting, validate_listing
from winetrail.services.pricing import (
    available_dates,
    is_weekend,
    times_for_date,
    weekend_premium_percent,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def filters_from_query(
    price_min: float = 0,
    price_max: float = 1000,
    tasting_price: Optional[float] = 200,
    wines_min: int = 1,
    wines_max: int = 10,
    wine_type: Annotated[list[str], Query()] = [],
    ava: Annotated[list[str], Query()] = [],
    time: str = "",
    special_features: Annotated[list[str], Query()] = [],
    people_min: int = 1,
    people_max: int = 20,
    tours_available: bool = False,
    multiple_tastings: bool = False,
    food_pairings: bool = False,
) -> Filters:
    selected = {w.strip().lower() for w in wine_type}
    return Filters(
        price_range=(price_min, price_max),
        tasting_price=tasting_price,
        number_of_wines=(wines_min, wines_max),
        wine_type={name: name in selected for name in WINE_TYPES},
        ava=ava,
        time=time,
        special_features=special_features,
        number_of_people=(people_min, people_max),
        tours_available=tours_available,
        multiple_tastings=multiple_tastings,
        food_pairings=food_pairings,
    )


async def list_wineries(
    filters: Annotated[Filters, Depends(filters_from_query)],
) -> list[WineryResponse]:
    """List wineries matching the filter facets given as query parameters."""
    wineries = await Winery.find_all().sort(+Winery.name).to_list()
    return [WineryResponse.from_winery(w) for w in apply_filters(filters, wineries)]


async def search_wineries(filters: Filters) -> list[WineryResponse]:
    """Filter wineries with a full ``Filters`` body."""
    wineries = await Winery.find_all().sort(+Winery.name).to_list()
    return [WineryResponse.from_winery(w) for w in apply_filters(filters, wineries)]


async def get_winery(winery_id: str) -> WineryResponse:
    return WineryResponse.from_winery(await get_winery_or_404(winery_id))


async def get_tasting_slots(winery_id: str, tasting_index: int) -> TastingSlotsResponse:
    """Bookable slots of a tasting grouped by date for the calendar."""
    winery = await get_winery_or_404(winery_id)
    try:
        tasting = get_tasting(winery, tasting_index)
    except ListingValidationError as e:
        raise e.to_http() from e

    booking = tasting.booking_info
    slots = booking.available_slots
    days = []
    for day in available_dates(slots):
        times = times_for_date(slots, day)
        days.append(SlotDay(date=day, times=times, weekend=is_weekend(times[0])))

    premium = None
    if booking.dynamic_pricing.enabled:
        premium = weekend_premium_percent(booking.dynamic_pricing.weekend_multiplier)

    return TastingSlotsResponse(
        tasting_index=tasting_index,
        max_guests_per_slot=booking.max_guests_per_slot,
        weekend_premium_percent=premium,
        days=days,
    )


async def create_winery(
    winery_in: WineryCreate,
    current_user: RequireAuth,
) -> WineryResponse:
    """Create a listing owned by the caller."""
    winery = Winery(owner_id=current_user.id, **winery_in.model_dump())
    try:
        validate_listing(winery)
    except ListingValidationError as e:
        raise e.to_http() from e

    await winery.insert()
    logger.info("Winery %s created by user %s", winery.id, current_user.id)
    return WineryResponse.from_winery(winery)


router.add_api_route("", list_wineries, methods=["GET"])
router.add_api_route("", create_winery, methods=["POST"], status_code=201)
router.add_api_route("/search", search_wineries, methods=["POST"])
router.add_api_route("/{winery_id}", get_winery, methods=["GET"])
router.add_api_route("/{winery_id}/tastings/{tasting_index}/slots", get_tasting_slots, methods=["GET"])
