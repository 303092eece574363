"""Booking slot grouping and itinerary pricing."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from winetrail.models.winery import TastingInfo, Winery

if TYPE_CHECKING:
    from winetrail.models.itinerary import BookingDetails

SATURDAY = 5


def parse_slot(slot: str) -> datetime:
    """Parse an ISO-8601 slot into an aware UTC datetime."""
    parsed = datetime.fromisoformat(slot.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def slot_date_key(slot: str) -> str:
    return parse_slot(slot).strftime("%Y-%m-%d")


def group_slots_by_date(slots: list[str]) -> dict[str, list[str]]:
    """Group slots by UTC date, keeping input order within each day."""
    grouped: dict[str, list[str]] = {}
    for slot in slots:
        grouped.setdefault(slot_date_key(slot), []).append(slot)
    return grouped


def available_dates(slots: list[str]) -> list[str]:
    return sorted(group_slots_by_date(slots))


def times_for_date(slots: list[str], date_key: str) -> list[str]:
    return sorted(group_slots_by_date(slots).get(date_key, []), key=parse_slot)


def weekend_premium_percent(multiplier: float) -> int:
    """Percentage shown next to weekend dates, e.g. 1.25 -> 25."""
    return round(multiplier * 100 - 100)


def is_weekend(slot: str) -> bool:
    return parse_slot(slot).weekday() >= SATURDAY


def tasting_price_for_slot(tasting: TastingInfo, slot: str | None) -> float:
    """Tasting price, with the weekend multiplier applied when enabled."""
    price = tasting.tasting_price or 0
    pricing = tasting.booking_info.dynamic_pricing
    if slot and pricing.enabled and is_weekend(slot):
        return price * pricing.weekend_multiplier
    return price


def winery_total(details: "BookingDetails", winery: Winery | None) -> float:
    """Amount due for one itinerary entry.

    The selected tasting (when ``details.tasting`` is set) plus every
    selected food pairing, tour and extra feature.
    """
    total = 0.0
    tasting = winery.tasting(details.selected_tasting_index) if winery else None
    if details.tasting and tasting is not None:
        total += tasting_price_for_slot(tasting, details.selected_time)

    total += sum(p.price or 0 for p in details.food_pairings)
    total += sum(t.price or 0 for t in details.tours)
    total += sum(f.price or 0 for f in details.other_features)
    return total


def to_minor_units(amount: float) -> int:
    """Convert a currency amount to cents."""
    return round(amount * 100)
