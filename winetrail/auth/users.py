"""User manager for fastapi-users with email callbacks."""

import hashlib
import logging
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Optional

from beanie import PydanticObjectId
from fastapi import Depends, Request
from fastapi_users import BaseUserManager, FastAPIUsers
from fastapi_users_db_beanie import BeanieUserDatabase, ObjectIDIDMixin

from winetrail.auth.backend import auth_backend
from winetrail.auth.db import get_user_db
from winetrail.config import settings
from winetrail.models.user import User
from winetrail.services.analytics import posthog_service
from winetrail.services.email import get_email_service

logger = logging.getLogger(__name__)


def _derive_secret(base_secret: str, purpose: str) -> str:
    """Derive a purpose-specific secret so token types cannot be swapped."""
    return hashlib.sha256(f"{base_secret}:{purpose}".encode()).hexdigest()


class UserManager(ObjectIDIDMixin, BaseUserManager[User, PydanticObjectId]):
    """User manager sending verification and password reset emails."""

    @property
    def reset_password_token_secret(self) -> str:
        return _derive_secret(settings.secret_key, "reset_password")

    @property
    def verification_token_secret(self) -> str:
        return _derive_secret(settings.secret_key, "verification")

    async def on_after_register(self, user: User, request: Optional[Request] = None) -> None:
        logger.info("User registered (id=%s)", user.id)

        posthog_service.capture(
            distinct_id=str(user.id),
            event="user_registered",
            properties={"email_verification_required": settings.email_verification_required},
        )
        posthog_service.identify(distinct_id=str(user.id), properties={"email": user.email})

        if settings.email_verification_required and not user.is_verified:
            await self.request_verify(user, request)

    async def on_after_forgot_password(
        self, user: User, token: str, request: Optional[Request] = None
    ) -> None:
        logger.info("Password reset requested for user (id=%s)", user.id)

        sent = await get_email_service().send_password_reset_email(to_email=user.email, token=token)
        if not sent:
            logger.error("Failed to send password reset email for user (id=%s)", user.id)

    async def on_after_reset_password(self, user: User, request: Optional[Request] = None) -> None:
        logger.info("User password reset successfully (id=%s)", user.id)

    async def on_after_request_verify(
        self, user: User, token: str, request: Optional[Request] = None
    ) -> None:
        logger.info("Verification requested for user (id=%s)", user.id)

        sent = await get_email_service().send_verification_email(to_email=user.email, token=token)
        if not sent:
            logger.error("Failed to send verification email for user (id=%s)", user.id)

    async def on_after_verify(self, user: User, request: Optional[Request] = None) -> None:
        logger.info("User verified (id=%s)", user.id)

    async def on_after_login(
        self,
        user: User,
        request: Optional[Request] = None,
        response: Optional[object] = None,
    ) -> None:
        user.last_login = datetime.now(timezone.utc)
        await user.save()
        logger.info("User logged in (id=%s)", user.id)
        posthog_service.capture(
            distinct_id=str(user.id),
            event="user_login",
            properties={"method": "fastapi_users"},
        )


async def get_user_manager(
    user_db: BeanieUserDatabase = Depends(get_user_db),
) -> AsyncGenerator[UserManager, None]:
    yield UserManager(user_db)


fastapi_users = FastAPIUsers[User, PydanticObjectId](get_user_manager, [auth_backend])
