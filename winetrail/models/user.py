"""User document model for authentication with fastapi-users integration."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """User document model for authentication.

    This model is compatible with fastapi-users BeanieUserDatabase.

    Fields:
    - id: ObjectId primary key (from Document)
    - email: unique email (required by fastapi-users)
    - hashed_password: password hash
    - is_active: account active status
    - is_verified: email verification status
    - is_superuser: marketplace administrator (may edit any listing)

    Custom fields added for WineTrail:
    - full_name: optional display name
    - date_of_birth: used for the minimum-age check before booking
    - created_at, updated_at: timestamps
    - last_login: last login timestamp
    """

    email: Indexed(str, unique=True)
    hashed_password: str
    is_active: bool = True
    is_superuser: bool = False
    is_verified: bool = False

    full_name: Optional[str] = None
    # Stored as a UTC midnight datetime; BSON has no date-only type
    date_of_birth: Optional[datetime] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: Optional[datetime] = None

    class Settings:
        name = "users"
        use_state_management = True
        email_collation = None  # Use default collation

    @property
    def is_admin(self) -> bool:
        """Alias for is_superuser."""
        return self.is_superuser

    @is_admin.setter
    def is_admin(self, value: bool) -> None:
        self.is_superuser = value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, is_active={self.is_active})>"
