"""Shared helpers for routers."""

import logging

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, status
from pydantic import ValidationError

from winetrail.models.user import User
from winetrail.models.winery import Winery

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("winetrail.security")


def parse_object_id(value: str, label: str = "Winery") -> PydanticObjectId:
    """Parse an ObjectId path parameter; malformed ids are a 404."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError, ValidationError) as e:
        logger.debug("Invalid %s ID format: %s - %s", label.lower(), value, e)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} with ID {value} not found",
        ) from e


async def get_winery_or_404(winery_id: str) -> Winery:
    winery = await Winery.get(parse_object_id(winery_id))
    if winery is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Winery with ID {winery_id} not found",
        )
    return winery


async def get_owned_winery(winery_id: str, user: User) -> Winery:
    """Load a winery the caller may edit: its owner or an admin."""
    winery = await get_winery_or_404(winery_id)
    if not user.is_admin and winery.owner_id != user.id:
        security_logger.warning(
            "Forbidden listing edit: user_id=%s, winery_id=%s", user.id, winery_id
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this winery",
        )
    return winery
