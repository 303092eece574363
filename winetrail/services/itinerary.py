"""Itinerary editing: adding wineries, choosing slots and extras."""

import logging
from datetime import datetime, timezone
from typing import Optional

from beanie import PydanticObjectId
from fastapi import status

from winetrail.models.itinerary import (
    BookingDetails,
    FoodPairingSelection,
    Itinerary,
    ItineraryItem,
)
from winetrail.models.user import User
from winetrail.models.winery import TastingInfo, Winery
from winetrail.services.errors import ItineraryError
from winetrail.services.pricing import parse_slot, slot_date_key

logger = logging.getLogger(__name__)


async def get_or_create_itinerary(user: User) -> Itinerary:
    itinerary = await Itinerary.find_one(Itinerary.user_id == user.id)
    if itinerary is None:
        itinerary = Itinerary(user_id=user.id)
        await itinerary.insert()
    return itinerary


async def save_itinerary(itinerary: Itinerary) -> Itinerary:
    sort_items(itinerary)
    itinerary.updated_at = datetime.now(timezone.utc)
    await itinerary.save()
    return itinerary


def _sort_key(item: ItineraryItem) -> tuple[int, datetime]:
    selected = item.booking_details.selected_time
    if not selected:
        return (1, datetime.min.replace(tzinfo=timezone.utc))
    try:
        return (0, parse_slot(selected))
    except ValueError:
        return (1, datetime.min.replace(tzinfo=timezone.utc))


def sort_items(itinerary: Itinerary) -> Itinerary:
    """Order items by selected time; items without a time go last."""
    itinerary.items.sort(key=_sort_key)
    return itinerary


def _tasting_or_error(winery: Winery, index: int) -> TastingInfo:
    tasting = winery.tasting(index)
    if tasting is None:
        raise ItineraryError(f"Tasting #{index + 1} is not offered by {winery.name}.")
    return tasting


def check_slot(tasting: TastingInfo, slot: str, number_of_people: int) -> None:
    """Reject a slot the tasting cannot take for this party."""
    if tasting.booking_info.max_guests_per_slot == 0:
        raise ItineraryError("This winery is not accepting bookings at this time.")
    if not number_of_people:
        raise ItineraryError("Please select the number of people before choosing a date.")
    if slot not in tasting.booking_info.available_slots:
        raise ItineraryError("Selected date is not available for booking.")


def _item_for(winery: Winery, details: BookingDetails) -> ItineraryItem:
    return ItineraryItem(
        winery_id=winery.id,
        winery_name=winery.name,
        location=winery.location,
        payment_method=winery.payment_method,
        booking_details=details,
    )


def add_winery(
    itinerary: Itinerary,
    winery: Winery,
    details: Optional[BookingDetails] = None,
) -> ItineraryItem:
    """Append a winery; each winery may appear only once."""
    if itinerary.find_item(winery.id) is not None:
        raise ItineraryError("Winery already in itinerary!", status_code=status.HTTP_409_CONFLICT)

    details = details or BookingDetails()
    tasting = _tasting_or_error(winery, details.selected_tasting_index) if winery.tasting_info else None
    if details.selected_time:
        if tasting is None:
            raise ItineraryError("Selected date is not available for booking.")
        check_slot(tasting, details.selected_time, details.number_of_people)
        details.selected_date = slot_date_key(details.selected_time)

    item = _item_for(winery, details)
    itinerary.items.append(item)
    sort_items(itinerary)
    logger.info("Winery %s added to itinerary %s", winery.id, itinerary.id)
    return item


def select_slot(
    itinerary: Itinerary,
    winery: Winery,
    slot: str,
    tasting_index: int = 0,
    number_of_people: int = 0,
    food_pairing: Optional[str] = None,
) -> ItineraryItem:
    """Pick a bookable slot for a winery.

    A winery not yet in the itinerary is added with the tasting selected
    and the named food pairing, if any. For a winery already present only
    the date, time and tasting index change.
    """
    tasting = _tasting_or_error(winery, tasting_index)
    check_slot(tasting, slot, number_of_people)
    date_key = slot_date_key(slot)

    item = itinerary.find_item(winery.id)
    if item is None:
        pairings = [
            FoodPairingSelection(name=option.name, price=option.price)
            for option in tasting.food_pairing_options
            if food_pairing and option.name == food_pairing
        ]
        details = BookingDetails(
            selected_date=date_key,
            selected_time=slot,
            selected_tasting_index=tasting_index,
            number_of_people=number_of_people,
            tasting=True,
            food_pairings=pairings,
        )
        item = _item_for(winery, details)
        itinerary.items.append(item)
    else:
        details = item.booking_details
        details.selected_date = date_key
        details.selected_time = slot
        details.selected_tasting_index = tasting_index
        details.number_of_people = number_of_people

    sort_items(itinerary)
    return item


def update_details(
    itinerary: Itinerary,
    winery: Winery,
    details: BookingDetails,
) -> ItineraryItem:
    """Replace the booking details of a winery already in the itinerary.

    Switching to a different tasting drops the extras chosen for the
    previous one.
    """
    item = itinerary.find_item(winery.id)
    if item is None:
        raise ItineraryError("Winery is not in the itinerary", status_code=status.HTTP_404_NOT_FOUND)

    tasting = _tasting_or_error(winery, details.selected_tasting_index)
    if details.selected_tasting_index != item.booking_details.selected_tasting_index:
        details.food_pairings = []
        details.tours = []
        details.other_features = []

    if details.selected_time:
        check_slot(tasting, details.selected_time, details.number_of_people)
        details.selected_date = slot_date_key(details.selected_time)
    elif details.selected_date:
        available = {slot_date_key(s) for s in tasting.booking_info.available_slots}
        if details.selected_date not in available:
            raise ItineraryError("Selected date is not available for booking.")

    item.booking_details = details
    item.winery_name = winery.name
    item.location = winery.location
    item.payment_method = winery.payment_method
    sort_items(itinerary)
    return item


def remove_winery(itinerary: Itinerary, winery_id: PydanticObjectId) -> None:
    before = len(itinerary.items)
    itinerary.items = [item for item in itinerary.items if item.winery_id != winery_id]
    if len(itinerary.items) == before:
        raise ItineraryError("Winery is not in the itinerary", status_code=status.HTTP_404_NOT_FOUND)


def clear(itinerary: Itinerary) -> None:
    itinerary.items = []
