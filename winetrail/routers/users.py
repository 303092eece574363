"""Profile endpoints for the signed-in user."""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from winetrail.auth.schemas import birth_datetime
from winetrail.routers.auth import UserResponse
from winetrail.services.auth import RequireAuth, is_of_age

logger = logging.getLogger(__name__)

router = APIRouter()


class DateOfBirthRequest(BaseModel):
    date_of_birth: date


class DateOfBirthResponse(BaseModel):
    user: UserResponse
    is_of_age: bool


async def set_date_of_birth(
    body: DateOfBirthRequest,
    current_user: RequireAuth,
) -> DateOfBirthResponse:
    """Record the caller's date of birth for the booking age check."""
    today = datetime.now(timezone.utc).date()
    if body.date_of_birth > today:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Date of birth cannot be in the future",
        )

    current_user.date_of_birth = birth_datetime(body.date_of_birth)
    current_user.updated_at = datetime.now(timezone.utc)
    await current_user.save()
    logger.info("Date of birth recorded for user %s", current_user.id)

    return DateOfBirthResponse(
        user=UserResponse.from_user(current_user),
        is_of_age=is_of_age(body.date_of_birth, today=today),
    )


router.add_api_route("/me/date-of-birth", set_date_of_birth, methods=["PUT"])
