"""Pydantic schemas for fastapi-users with MongoDB/Beanie."""

from datetime import date, datetime, time, timezone

from beanie import PydanticObjectId
from fastapi_users import schemas
from pydantic import ConfigDict


def birth_datetime(value: date) -> datetime:
    """UTC midnight of a birth date; BSON has no date-only type."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


class UserRead(schemas.BaseUser[PydanticObjectId]):
    """User data returned by the fastapi-users routes."""

    full_name: str | None = None
    date_of_birth: datetime | None = None
    created_at: datetime
    last_login: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreate(schemas.BaseUserCreate):
    full_name: str | None = None
    date_of_birth: date | None = None

    def create_update_dict(self):
        data = super().create_update_dict()
        if data.get("date_of_birth") is not None:
            data["date_of_birth"] = birth_datetime(data["date_of_birth"])
        return data


class UserUpdate(schemas.BaseUserUpdate):
    full_name: str | None = None
