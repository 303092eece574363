"""Authentication service: passwords, JWT bearer tokens and age checks."""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Annotated

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from winetrail.config import settings
from winetrail.models.security import LoginAttempt, RevokedToken
from winetrail.models.user import User
from winetrail.services.errors import AgeVerificationError

security_logger = logging.getLogger("winetrail.security")

# Argon2, the fastapi-users default
password_hash = PasswordHash((Argon2Hasher(),))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 120
TOKEN_LIFETIME_SECONDS = ACCESS_TOKEN_EXPIRE_MINUTES * 60

# fastapi-users tokens carry an audience claim that our own tokens do not
_DECODE_OPTIONS = {"verify_aud": False}


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return password_hash.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token with a unique JWT ID for revocation support."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT. Raises ``JWTError`` when invalid or expired."""
    return jwt.decode(
        token,
        settings.secret_key,
        algorithms=[ALGORITHM],
        options=_DECODE_OPTIONS,
    )


async def get_user_by_email(email: str) -> User | None:
    return await User.find_one(User.email == email)


async def authenticate_user(
    email: str,
    password: str,
    ip_address: str | None = None,
) -> User | None:
    """Authenticate a user with email and password.

    Accounts are locked after repeated failures.

    Returns:
        User if authentication successful, None otherwise.

    Raises:
        HTTPException: 429 if the account is locked out.
    """
    remaining = await LoginAttempt.lockout_remaining(email)
    if remaining:
        security_logger.warning(
            "Login attempt blocked - account locked: email=%s, ip=%s, remaining_seconds=%d",
            email,
            ip_address or "unknown",
            remaining,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Account temporarily locked. Try again in {remaining // 60 + 1} minutes.",
            headers={"Retry-After": str(remaining)},
        )

    user = await get_user_by_email(email)
    if user is None or not verify_password(password, user.hashed_password) or not user.is_active:
        await LoginAttempt.record_failure(email, ip_address=ip_address)
        security_logger.warning(
            "Failed login: email=%s, user_id=%s, ip=%s",
            email,
            user.id if user else None,
            ip_address or "unknown",
        )
        return None

    await LoginAttempt.clear(email)
    security_logger.info("Successful login: user_id=%s, ip=%s", user.id, ip_address or "unknown")
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> User | None:
    """Resolve the bearer token to an active user.

    The subject may be an email (our tokens) or a user id (fastapi-users
    tokens). Revoked tokens resolve to None.
    """
    if not token:
        return None

    try:
        payload = decode_token(token)
    except JWTError:
        return None

    subject: str | None = payload.get("sub")
    if subject is None:
        return None

    jti: str | None = payload.get("jti")
    if jti and await RevokedToken.is_revoked(jti):
        return None

    user = await get_user_by_email(subject)
    if user is None:
        try:
            user = await User.get(PydanticObjectId(subject))
        except (InvalidId, TypeError):
            user = None

    if user is None or not user.is_active:
        return None
    return user


async def require_auth(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Raise 401 unless a valid user is signed in."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    user: Annotated[User, Depends(require_auth)],
) -> User:
    if not user.is_admin:
        security_logger.warning("Admin access denied: user_id=%s", user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


async def revoke_token(token: str, user_id: str | None = None, reason: str = "logout") -> bool:
    """Add a JWT to the blacklist until it expires.

    Returns:
        True if the token was revoked, False if it could not be decoded.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        security_logger.warning("Token revocation failed - invalid JWT: user_id=%s", user_id)
        return False

    jti: str | None = payload.get("jti")
    exp: int | None = payload.get("exp")
    if not jti or not exp:
        return False

    if not await RevokedToken.is_revoked(jti):
        await RevokedToken.revoke(
            jti=jti,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
            user_id=user_id,
            reason=reason,
        )
    security_logger.info("Token revoked: user_id=%s, reason=%s, jti=%s", user_id, reason, jti)
    return True


def age_on(date_of_birth: date, today: date) -> int:
    """Whole years between ``date_of_birth`` and ``today``."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def is_of_age(date_of_birth: date, minimum_age: int | None = None, today: date | None = None) -> bool:
    minimum = settings.minimum_age if minimum_age is None else minimum_age
    return age_on(date_of_birth, today or datetime.now(timezone.utc).date()) >= minimum


def verify_booking_age(user: User, today: date | None = None) -> None:
    """Ensure the user may book alcohol-related services.

    Raises:
        AgeVerificationError: 428 when no date of birth is on file,
            403 when the user is under the minimum age.
    """
    if user.date_of_birth is None:
        raise AgeVerificationError(
            "Date of birth is required to book wine tastings.",
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
        )

    minimum = settings.minimum_age
    if not is_of_age(user.date_of_birth.date(), minimum, today):
        security_logger.warning("Booking blocked - under minimum age: user_id=%s", user.id)
        raise AgeVerificationError(
            f"You must be {minimum} or older to book wine tastings and alcohol-related services."
        )


CurrentUser = Annotated[User | None, Depends(get_current_user)]
RequireAuth = Annotated[User, Depends(require_auth)]
RequireAdmin = Annotated[User, Depends(require_admin)]
