"""Authentication endpoints with fastapi-users integration."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from winetrail.auth import UserCreate, UserRead, auth_backend, fastapi_users
from winetrail.config import settings
from winetrail.models.user import User
from winetrail.services.analytics import posthog_service
from winetrail.services.auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    RequireAuth,
    authenticate_user,
    create_access_token,
    get_password_hash,
    revoke_token,
    verify_password,
)

security_logger = logging.getLogger("winetrail.security")

router = APIRouter()

limiter = Limiter(key_func=get_remote_address)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str | None
    date_of_birth: datetime | None
    is_active: bool
    is_admin: bool
    is_verified: bool
    created_at: datetime
    last_login: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            date_of_birth=user.date_of_birth,
            is_active=user.is_active,
            is_admin=user.is_admin,
            is_verified=user.is_verified,
            created_at=user.created_at,
            last_login=user.last_login,
        )


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = ACCESS_TOKEN_EXPIRE_MINUTES * 60


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: RequireAuth) -> UserResponse:
    return UserResponse.from_user(current_user)


@router.put("/password")
@limiter.limit("5/minute;20/hour")
async def change_password(
    request: Request,
    password_request: PasswordChangeRequest,
    current_user: RequireAuth,
) -> dict:
    """Change the caller's password and revoke the token used."""
    if not verify_password(password_request.current_password, current_user.hashed_password):
        security_logger.warning(
            "Password change failed - invalid current password: user_id=%s, ip=%s",
            current_user.id,
            get_remote_address(request),
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    current_user.hashed_password = get_password_hash(password_request.new_password)
    current_user.updated_at = datetime.now(timezone.utc)
    await current_user.save()

    token = _bearer_token(request)
    if token:
        await revoke_token(token=token, user_id=str(current_user.id), reason="password_change")

    security_logger.info("Password changed: user_id=%s", current_user.id)
    return {"message": "Password updated successfully. Please log in again."}


@router.post("/logout")
async def logout(request: Request, current_user: RequireAuth) -> dict:
    """Revoke the caller's bearer token."""
    posthog_service.capture(distinct_id=str(current_user.id), event="user_logout")

    token = _bearer_token(request)
    if token and not await revoke_token(token=token, user_id=str(current_user.id)):
        return {"message": "Logged out (token could not be revoked)"}
    return {"message": "Successfully logged out"}


@router.post("/token", response_model=Token)
@limiter.limit("30/minute;200/hour")
async def login_token(
    request: Request,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """OAuth2 password login; the ``username`` field carries the email."""
    user = await authenticate_user(
        form_data.username, form_data.password, get_remote_address(request)
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if settings.email_verification_required and not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email not verified. Please check your email for verification link.",
        )

    user.last_login = datetime.now(timezone.utc)
    await user.save()

    posthog_service.capture(
        distinct_id=str(user.id),
        event="user_login",
        properties={"method": "password"},
    )
    return Token(access_token=create_access_token(data={"sub": user.email}))


# fastapi-users routes go last; the /logout above must match first.
# POST /api/auth/login
router.include_router(fastapi_users.get_auth_router(auth_backend))

if settings.registration_enabled:
    router.include_router(fastapi_users.get_register_router(UserRead, UserCreate))

# POST /api/auth/forgot-password, /api/auth/reset-password
router.include_router(fastapi_users.get_reset_password_router())

# POST /api/auth/request-verify-token, /api/auth/verify
router.include_router(fastapi_users.get_verify_router(UserRead))
