"""Multi-criteria winery search predicate.

Each facet is an independent predicate over a winery's tastings; a
winery is kept when every active facet holds. Price range, wine count
and party size are always active, so wineries without tastings never
match.
"""

from collections.abc import Iterable
from typing import Optional

from pydantic import BaseModel, Field

from winetrail.models.winery import TastingInfo, Winery

WINE_TYPES = ("red", "rosé", "white", "sparkling", "dessert")


def _default_wine_types() -> dict[str, bool]:
    return {wine_type: False for wine_type in WINE_TYPES}


class Filters(BaseModel):
    """Search facets; the defaults are the "reset" state."""

    price_range: tuple[float, float] = (0, 1000)
    tasting_price: Optional[float] = 200
    number_of_wines: tuple[int, int] = (1, 10)
    wine_type: dict[str, bool] = Field(default_factory=_default_wine_types)
    ava: list[str] = Field(default_factory=list)
    time: str = ""
    special_features: list[str] = Field(default_factory=list)
    number_of_people: tuple[int, int] = (1, 20)
    tours_available: bool = False
    multiple_tastings: bool = False
    food_pairings: bool = False

    @property
    def selected_wine_types(self) -> set[str]:
        return {name.strip().lower() for name, on in self.wine_type.items() if on}


def _within(value: float, bounds: tuple[float, float]) -> bool:
    lo, hi = bounds
    return lo <= value <= hi


def _any_tasting(winery: Winery, predicate) -> bool:
    return any(predicate(tasting) for tasting in winery.tasting_info)


def matches_price_range(winery: Winery, bounds: tuple[float, float]) -> bool:
    return bool(winery.tasting_info) and _any_tasting(
        winery,
        lambda t: t.tasting_price is not None and _within(t.tasting_price, bounds),
    )


def matches_tasting_price(winery: Winery, ceiling: Optional[float]) -> bool:
    if ceiling is None:
        return True
    return _any_tasting(
        winery, lambda t: t.tasting_price is not None and t.tasting_price <= ceiling
    )


def matches_wine_count(winery: Winery, bounds: tuple[int, int]) -> bool:
    return _any_tasting(winery, lambda t: _within(t.number_of_wines_per_tasting or 1, bounds))


def matches_party_size(winery: Winery, bounds: tuple[int, int]) -> bool:
    def check(tasting: TastingInfo) -> bool:
        return any(_within(n or 1, bounds) for n in tasting.booking_info.number_of_people)

    return _any_tasting(winery, check)


def matches_wine_type(winery: Winery, selected: set[str]) -> bool:
    if not selected:
        return True
    return _any_tasting(
        winery,
        lambda t: any(w.strip().lower() in selected for w in t.wine_types),
    )


def matches_ava(winery: Winery, avas: list[str]) -> bool:
    if not avas:
        return True
    return _any_tasting(winery, lambda t: t.ava in avas)


def matches_time(winery: Winery, time: str) -> bool:
    if not time:
        return True
    wanted = time.lower()
    return _any_tasting(
        winery, lambda t: any(slot.lower() == wanted for slot in t.available_times)
    )


def matches_special_features(winery: Winery, features: list[str]) -> bool:
    if not features:
        return True
    wanted = set(features)
    return _any_tasting(winery, lambda t: wanted.issubset(t.special_features))


def matches_filters(filters: Filters, winery: Winery) -> bool:
    """True when ``winery`` satisfies every active facet."""
    if not matches_price_range(winery, filters.price_range):
        return False
    if not matches_tasting_price(winery, filters.tasting_price):
        return False
    if not matches_wine_count(winery, filters.number_of_wines):
        return False
    if not matches_party_size(winery, filters.number_of_people):
        return False
    if not matches_wine_type(winery, filters.selected_wine_types):
        return False
    if not matches_ava(winery, filters.ava):
        return False
    if not matches_time(winery, filters.time):
        return False
    if not matches_special_features(winery, filters.special_features):
        return False
    if filters.multiple_tastings and len(winery.tasting_info) <= 1:
        return False
    if filters.food_pairings and not _any_tasting(winery, lambda t: bool(t.food_pairing_options)):
        return False
    if filters.tours_available and not _any_tasting(winery, lambda t: t.tours.available):
        return False
    return True


def apply_filters(filters: Filters, wineries: Iterable[Winery]) -> list[Winery]:
    """Return the wineries matching ``filters``, preserving input order."""
    return [winery for winery in wineries if matches_filters(filters, winery)]
