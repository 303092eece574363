"""MongoDB connection and Beanie initialization."""

import logging
from typing import TYPE_CHECKING

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from winetrail.config import settings

if TYPE_CHECKING:
    from beanie import Document

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None


def get_document_models() -> list[type["Document"]]:
    """Every collection the app stores, in registration order."""
    from winetrail.models import Booking, Itinerary, LoginAttempt, RevokedToken, User, Winery

    return [User, Winery, Itinerary, Booking, RevokedToken, LoginAttempt]


async def init_db(
    mongodb_url: str | None = None,
    mongodb_database: str | None = None,
    motor_client: AsyncIOMotorClient | None = None,
) -> None:
    """Connect to MongoDB and register the document models with Beanie.

    Args:
        mongodb_url: Connection URL; defaults to ``database.mongodb_url``.
        mongodb_database: Database name; defaults to ``database.mongodb_database``.
        motor_client: Use this client instead of opening one (tests pass a mock).
    """
    global _client

    _client = motor_client or AsyncIOMotorClient(
        mongodb_url or settings.mongodb_url,
        minPoolSize=settings.min_pool_size,
        maxPoolSize=settings.max_pool_size,
    )
    name = mongodb_database or settings.mongodb_database
    await init_beanie(database=_client[name], document_models=get_document_models())
    logger.info("Connected to MongoDB database '%s'", name)


async def close_db() -> None:
    global _client

    if _client is not None:
        _client.close()
        _client = None
