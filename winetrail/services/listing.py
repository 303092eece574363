"""Listing wizard operations and validation for winery owners.

The functions here edit a :class:`Winery` in place and return it; none
of them touch the database. Routers load the winery, apply one
operation, validate and save.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from fastapi import status

from winetrail.models.winery import (
    BookingInfo,
    FoodPairingOption,
    OtherFeature,
    TastingInfo,
    TourOption,
    WineDetail,
    Winery,
    slot_iso,
)
from winetrail.services.errors import ListingValidationError


def new_tasting() -> TastingInfo:
    """Blank tasting used when the owner adds another package."""
    return TastingInfo(booking_info=BookingInfo(max_guests_per_slot=1))


def initial_tasting() -> TastingInfo:
    tasting = new_tasting()
    tasting.tasting_title = "Tasting 1"
    tasting.tasting_description = "Initial tasting experience"
    return tasting


def get_tasting(winery: Winery, index: int) -> TastingInfo:
    tasting = winery.tasting(index)
    if tasting is None:
        raise ListingValidationError(
            [f"Tasting #{index + 1} does not exist"], status_code=status.HTTP_404_NOT_FOUND
        )
    return tasting


def _check_item_index(items: Sequence, index: int, label: str) -> None:
    if not 0 <= index < len(items):
        raise ListingValidationError(
            [f"{label} #{index + 1} does not exist"], status_code=status.HTTP_404_NOT_FOUND
        )


def add_tasting(winery: Winery, after_index: Optional[int] = None) -> Winery:
    """Insert a blank tasting after ``after_index`` (at the end when None).

    A winery without tastings gets the initial tasting instead.
    """
    if not winery.tasting_info:
        winery.tasting_info = [initial_tasting()]
        return winery

    position = len(winery.tasting_info) if after_index is None else after_index + 1
    winery.tasting_info.insert(max(0, position), new_tasting())
    return winery


def remove_tasting(winery: Winery, index: int) -> Winery:
    get_tasting(winery, index)
    del winery.tasting_info[index]
    return winery


def add_food_pairing(winery: Winery, index: int, name: str, price: float) -> FoodPairingOption:
    tasting = get_tasting(winery, index)
    if not name or not name.strip():
        raise ListingValidationError(["Food pairing name is required"])
    if price is None or price < 0:
        raise ListingValidationError(["Food pairing price must be 0 or greater"])

    option = FoodPairingOption(id=str(uuid.uuid4()), name=name, price=price)
    tasting.food_pairing_options.append(option)
    return option


def remove_food_pairing(winery: Winery, index: int, option_index: int) -> Winery:
    tasting = get_tasting(winery, index)
    _check_item_index(tasting.food_pairing_options, option_index, "Food pairing")
    del tasting.food_pairing_options[option_index]
    return winery


def add_wine(
    winery: Winery,
    index: int,
    name: str,
    description: str,
    year: Optional[int] = None,
    tasting_notes: str = "",
    photo: Optional[str] = None,
) -> WineDetail:
    tasting = get_tasting(winery, index)
    if not name or not description:
        raise ListingValidationError(["Wine name and description are required"])

    wine = WineDetail(
        id=str(uuid.uuid4()),
        name=name,
        description=description,
        year=year or None,
        tasting_notes=tasting_notes,
        photo=photo or None,
    )
    tasting.wine_details.append(wine)
    return wine


def remove_wine(winery: Winery, index: int, wine_index: int) -> Winery:
    tasting = get_tasting(winery, index)
    _check_item_index(tasting.wine_details, wine_index, "Wine")
    del tasting.wine_details[wine_index]
    return winery


def add_tour(winery: Winery, index: int, description: str, cost: Optional[float]) -> TourOption:
    """Add a tour option; any tour makes the tasting's tours available."""
    tasting = get_tasting(winery, index)
    if not description or cost is None or cost < 0:
        raise ListingValidationError(["Tour description and a cost of 0 or greater are required"])

    tour = TourOption(description=description, cost=cost)
    tasting.tours.available = True
    tasting.tours.tour_options.append(tour)
    return tour


def remove_tour(winery: Winery, index: int, tour_index: int) -> Winery:
    tasting = get_tasting(winery, index)
    _check_item_index(tasting.tours.tour_options, tour_index, "Tour")
    del tasting.tours.tour_options[tour_index]
    return winery


def add_other_feature(winery: Winery, index: int, description: str, cost: float) -> OtherFeature:
    tasting = get_tasting(winery, index)
    if not description or cost is None or cost < 0:
        raise ListingValidationError(["Feature description and a cost of 0 or greater are required"])

    feature = OtherFeature(description=description, cost=cost)
    tasting.other_features.append(feature)
    return feature


def remove_other_feature(winery: Winery, index: int, feature_index: int) -> Winery:
    tasting = get_tasting(winery, index)
    _check_item_index(tasting.other_features, feature_index, "Feature")
    del tasting.other_features[feature_index]
    return winery


def set_available_slots(winery: Winery, index: int, slots: Sequence[datetime]) -> Winery:
    """Replace the bookable slots of a tasting with UTC ISO-8601 strings."""
    tasting = get_tasting(winery, index)
    tasting.booking_info.available_slots = [slot_iso(slot) for slot in slots]
    return winery


def set_external_booking_link(winery: Winery, index: int, link: str) -> Winery:
    tasting = get_tasting(winery, index)
    tasting.booking_info.external_booking_link = link.strip()
    return winery


def distribute_images(
    winery: Winery,
    uploads_per_tasting: dict[int, int],
    urls: Sequence[str],
) -> Winery:
    """Hand uploaded image URLs out to tastings in tasting order.

    ``uploads_per_tasting`` maps a tasting index to how many files were
    uploaded for it; ``urls`` holds the resulting URLs in the same order.
    New URLs are appended after the tasting's existing images.
    """
    remaining = iter(urls)
    for index, tasting in enumerate(winery.tasting_info):
        for _ in range(uploads_per_tasting.get(index, 0)):
            url = next(remaining, None)
            if url is None:
                return winery
            tasting.images.append(url)
    return winery


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def basic_info_errors(winery: Winery) -> list[str]:
    errors = []
    if _blank(winery.name):
        errors.append("Winery name is required")
    if _blank(winery.description):
        errors.append("Description is required")
    if _blank(winery.contact_info.email):
        errors.append("Email is required")
    if _blank(winery.contact_info.phone):
        errors.append("Phone number is required")
    if _blank(winery.location.address):
        errors.append("Address is required")
    return errors


def tasting_errors(tasting: TastingInfo, number: int) -> list[str]:
    prefix = f"Tasting #{number}: "
    errors = []
    if _blank(tasting.tasting_title):
        errors.append(prefix + "Tasting title is required")
    if _blank(tasting.tasting_description):
        errors.append(prefix + "Tasting description is required")
    if tasting.tasting_price is None or tasting.tasting_price < 0:
        errors.append(prefix + "Tasting price must be 0 or greater")
    if not tasting.booking_info.external_booking_link and not tasting.available_times:
        errors.append(prefix + "At least one available time must be selected")
    if not tasting.wine_types:
        errors.append(prefix + "At least one wine type must be selected")
    if _blank(tasting.ava):
        errors.append(prefix + "AVA selection is required")
    if not tasting.images:
        errors.append(prefix + "At least one image is required")
    return errors


def listing_errors(winery: Winery) -> list[str]:
    """All validation messages for a listing, in wizard order."""
    errors = basic_info_errors(winery)
    if not winery.tasting_info:
        errors.append("At least one tasting must be added")
    for number, tasting in enumerate(winery.tasting_info, start=1):
        errors.extend(tasting_errors(tasting, number))
    return errors


def validate_listing(winery: Winery) -> None:
    """Raise :class:`ListingValidationError` if the listing is incomplete."""
    errors = listing_errors(winery)
    if errors:
        raise ListingValidationError(errors)
