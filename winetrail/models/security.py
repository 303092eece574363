"""Security bookkeeping documents: revoked JWTs and failed logins."""

from datetime import datetime, timedelta, timezone
from typing import ClassVar

from beanie import Document, Indexed
from pydantic import Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from MongoDB."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RevokedToken(Document):
    """A logged-out or superseded JWT, kept until it would have expired."""

    jti: Indexed(str, unique=True)
    expires_at: Indexed(datetime)
    revoked_at: datetime = Field(default_factory=utcnow)
    user_id: str | None = None
    reason: str = "logout"

    class Settings:
        name = "revoked_tokens"

    @classmethod
    async def is_revoked(cls, jti: str) -> bool:
        return await cls.find_one(cls.jti == jti) is not None

    @classmethod
    async def revoke(
        cls,
        jti: str,
        expires_at: datetime,
        user_id: str | None = None,
        reason: str = "logout",
    ) -> "RevokedToken":
        token = cls(jti=jti, expires_at=expires_at, user_id=user_id, reason=reason)
        await token.insert()
        return token

    @classmethod
    async def cleanup_expired(cls) -> int:
        """Drop blacklist entries whose tokens have expired anyway."""
        result = await cls.find(cls.expires_at < utcnow()).delete()
        return result.deleted_count if result else 0


class LoginAttempt(Document):
    """A failed login, used to lock an account after repeated failures.

    MAX_FAILURES failures inside WINDOW lock the email for LOCKOUT
    counted from the most recent failure.
    """

    email: Indexed(str)
    attempted_at: Indexed(datetime) = Field(default_factory=utcnow)
    ip_address: str | None = None

    class Settings:
        name = "login_attempts"

    MAX_FAILURES: ClassVar[int] = 5
    WINDOW: ClassVar[timedelta] = timedelta(minutes=15)
    LOCKOUT: ClassVar[timedelta] = timedelta(minutes=15)

    @classmethod
    async def record_failure(cls, email: str, ip_address: str | None = None) -> None:
        await cls(email=email.lower(), ip_address=ip_address).insert()

    @classmethod
    async def _recent_failures(cls, email: str) -> list["LoginAttempt"]:
        since = utcnow() - cls.WINDOW
        return await cls.find(
            cls.email == email.lower(),
            cls.attempted_at >= since,
        ).sort(-cls.attempted_at).to_list()

    @classmethod
    async def lockout_remaining(cls, email: str) -> int:
        """Seconds left on the lockout for ``email``; 0 when not locked."""
        failures = await cls._recent_failures(email)
        if len(failures) < cls.MAX_FAILURES:
            return 0

        lockout_end = as_utc(failures[0].attempted_at) + cls.LOCKOUT
        return max(0, int((lockout_end - utcnow()).total_seconds()))

    @classmethod
    async def clear(cls, email: str) -> None:
        await cls.find(cls.email == email.lower()).delete()

    @classmethod
    async def cleanup_older_than(cls, hours: int = 24) -> int:
        result = await cls.find(cls.attempted_at < utcnow() - timedelta(hours=hours)).delete()
        return result.deleted_count if result else 0
