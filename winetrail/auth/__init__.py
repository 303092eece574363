"""fastapi-users integration for WineTrail."""

from winetrail.auth.backend import auth_backend
from winetrail.auth.db import get_user_db
from winetrail.auth.schemas import UserCreate, UserRead, UserUpdate
from winetrail.auth.users import UserManager, fastapi_users, get_user_manager

__all__ = [
    "auth_backend",
    "get_user_db",
    "UserManager",
    "get_user_manager",
    "fastapi_users",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
