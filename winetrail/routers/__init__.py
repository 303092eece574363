"""API routers for WineTrail."""

from winetrail.routers import (
    admin_wineries,
    auth,
    itinerary,
    places,
    uploads,
    users,
    webhooks,
    wineries,
)

__all__ = [
    "auth",
    "users",
    "wineries",
    "admin_wineries",
    "itinerary",
    "webhooks",
    "places",
    "uploads",
]
