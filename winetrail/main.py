"""FastAPI application entry point for WineTrail."""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from winetrail import __version__
from winetrail.config import settings
from winetrail.database import close_db, init_db
from winetrail.services.analytics import posthog_service

logger = logging.getLogger(__name__)

# Background cleanup task handle
_cleanup_task: asyncio.Task | None = None

# Rate limiter configuration
limiter = Limiter(key_func=get_remote_address)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # Security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Additional security headers
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Permissions-Policy"] = (
            "accelerometer=(), camera=(), gyroscope=(), magnetometer=(), microphone=(), usb=()"
        )

        # HTTPS enforcement header
        if settings.enforce_https:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response


def _is_production() -> bool:
    """True when not in debug mode and not under pytest."""
    return not settings.debug and not os.getenv("PYTEST_CURRENT_TEST")


async def _run_security_cleanup() -> None:
    """Hourly removal of expired revoked tokens and stale login attempts."""
    from winetrail.models.security import LoginAttempt, RevokedToken

    while True:
        try:
            # Wait 1 hour between cleanups
            await asyncio.sleep(3600)

            tokens_cleaned = await RevokedToken.cleanup_expired()
            if tokens_cleaned > 0:
                logger.info("Token blacklist cleanup: removed %d expired tokens", tokens_cleaned)

            attempts_cleaned = await LoginAttempt.cleanup_older_than(hours=24)
            if attempts_cleaned > 0:
                logger.info("Login attempts cleanup: removed %d old attempts", attempts_cleaned)

        except asyncio.CancelledError:
            logger.debug("Security cleanup task cancelled")
            break
        except Exception as e:
            logger.error("Security cleanup task error: %s", str(e))


def _validate_security_configuration() -> None:
    """Validate security configuration at startup.

    Raises:
        RuntimeError: If critical security issues are detected in production.
    """
    issues = []
    warnings = []

    # Check for weak/missing secret key
    secret_key = settings.secret_key
    if not secret_key or len(secret_key) < 32:
        issues.append(
            "SECRET_KEY is missing or too short (minimum 32 characters). "
            "Set WINETRAIL_SECRET_KEY environment variable."
        )

    # Check for insecure defaults in production
    if _is_production():
        mongodb_url = settings.mongodb_url
        if "localhost" in mongodb_url or "127.0.0.1" in mongodb_url:
            warnings.append(
                "MongoDB URL points to localhost in production. "
                "This may indicate an insecure configuration."
            )

        if not settings.enforce_https:
            warnings.append(
                "HTTPS enforcement is disabled. "
                "Consider enabling enforce_https=true for production."
            )

        if not settings.stripe_secret_key:
            warnings.append("Stripe secret key is not set; card payments will be rejected.")
        elif not settings.stripe_webhook_secret:
            warnings.append(
                "Stripe webhook secret is not set; paid bookings will stay pending."
            )

    for warning in warnings:
        logger.warning("SECURITY WARNING: %s", warning)

    # Fail on critical issues in production
    if issues and _is_production():
        for issue in issues:
            logger.error("SECURITY ERROR: %s", issue)
        raise RuntimeError(
            "Application startup blocked due to security configuration issues. "
            "See logs for details."
        )
    elif issues:
        for issue in issues:
            logger.warning("SECURITY WARNING (development mode): %s", issue)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global _cleanup_task

    # Startup
    _validate_security_configuration()

    # Ensure data directories exist
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.image_backend == "local":
        settings.image_storage_path.mkdir(parents=True, exist_ok=True)

    # Initialize database
    await init_db()

    # Start background cleanup task
    _cleanup_task = asyncio.create_task(_run_security_cleanup())
    logger.info("Started security cleanup background task")

    yield

    # Shutdown
    # Cancel cleanup task
    if _cleanup_task:
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped security cleanup background task")

    # Flush pending analytics events
    posthog_service.shutdown()

    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Wine tasting trails: winery listings, itineraries and bookings",
    version=__version__,
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware; empty origin list means same-origin only
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,
    )

# Add security headers middleware
app.add_middleware(SecurityHeadersMiddleware)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.app_name,
        }
    )


# PostHog analytics configuration endpoint
@app.get("/api/config/analytics", tags=["Configuration"])
async def get_analytics_config() -> JSONResponse:
    """PostHog settings for the frontend; only the public key is exposed."""
    return JSONResponse(
        content={
            "enabled": settings.posthog_enabled,
            "host": settings.posthog_host,
            "api_key": settings.posthog_api_key or "",
        }
    )


# Import and include routers
from winetrail.routers import (  # noqa: E402
    admin_wineries,
    auth,
    itinerary,
    places,
    uploads,
    users,
    webhooks,
    wineries,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(wineries.router, prefix="/api/winery", tags=["Wineries"])
app.include_router(admin_wineries.router, prefix="/api/admin/wineries", tags=["Listing Management"])
app.include_router(itinerary.router, prefix="/api/itinerary", tags=["Itinerary"])
app.include_router(webhooks.router, prefix="/api/stripe", tags=["Payments"])
app.include_router(places.router, prefix="/api/places", tags=["Places"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["Uploads"])

# Locally stored listing images
if settings.image_backend == "local":
    app.mount(
        "/api/images",
        StaticFiles(directory=str(settings.image_storage_path), check_dir=False),
        name="images",
    )
