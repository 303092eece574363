"""JWT authentication backend for fastapi-users."""

from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)

from winetrail.config import settings

bearer_transport = BearerTransport(tokenUrl="/api/auth/login")


def get_jwt_strategy() -> JWTStrategy:
    """JWT strategy sharing the secret and lifetime of our own tokens."""
    from winetrail.services.auth import TOKEN_LIFETIME_SECONDS

    return JWTStrategy(
        secret=settings.secret_key,
        lifetime_seconds=TOKEN_LIFETIME_SECONDS,
    )


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)
