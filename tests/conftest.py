"""Pytest configuration and fixtures for WineTrail tests.

Tests run against an in-memory MongoDB mock by default; set
``TEST_MONGODB_URL`` to run them against a real server instead.
"""

import os
import tempfile
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorClient

from winetrail.database import get_document_models
from winetrail.models import User, Winery
from winetrail.services.auth import create_access_token, get_password_hash

TEST_MONGODB_URL = os.environ.get("TEST_MONGODB_URL")

# A Saturday and a Monday, far enough ahead to stay bookable
WEEKEND_SLOT = "2030-06-01T15:00:00Z"
WEEKDAY_SLOT = "2030-06-03T15:00:00Z"

PNG_BYTES = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
    0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,  # IHDR
    0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,  # 1x1
    0x08, 0x02, 0x00, 0x00, 0x00, 0x90, 0x77, 0x53, 0xDE,
    0x00, 0x00, 0x00, 0x00, 0x49, 0x45, 0x4E, 0x44,  # IEND
    0xAE, 0x42, 0x60, 0x82,
])


def create_test_app():
    """The main app's routes without its database lifespan."""
    from fastapi import FastAPI

    from winetrail import __version__
    from winetrail.main import app as main_app

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(title="WineTrail Test", version=__version__, lifespan=test_lifespan)
    test_app.state.limiter = main_app.state.limiter
    for route in main_app.routes:
        test_app.routes.append(route)
    return test_app


_test_app = None


def get_test_app():
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


def winery_data(**overrides: Any) -> dict[str, Any]:
    """A complete, publishable listing with one bookable tasting."""
    data: dict[str, Any] = {
        "name": "Ridge Top Cellars",
        "description": "Family winery on the ridge",
        "location": {
            "address": "100 Vineyard Rd, Napa, CA",
            "latitude": 38.5,
            "longitude": -122.3,
        },
        "contact_info": {"email": "hello@ridgetop.example", "phone": "555-0100"},
        "tasting_info": [
            {
                "tasting_title": "Estate Flight",
                "tasting_description": "Five estate wines",
                "tasting_price": 40,
                "available_times": ["afternoon"],
                "wine_types": ["Red", "White"],
                "number_of_wines_per_tasting": 5,
                "special_features": ["Outdoor Seating"],
                "images": ["https://images.example/flight.jpg"],
                "food_pairing_options": [{"id": "fp1", "name": "Cheese Board", "price": 25}],
                "ava": "Napa Valley",
                "booking_info": {
                    "booking_enabled": True,
                    "max_guests_per_slot": 8,
                    "number_of_people": [1, 8],
                    "dynamic_pricing": {"enabled": True, "weekend_multiplier": 1.5},
                    "available_slots": [WEEKEND_SLOT, WEEKDAY_SLOT],
                },
            }
        ],
        "payment_method": {"type": "pay_winery", "external_booking_link": ""},
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture(scope="function")
async def mongo_client():
    if TEST_MONGODB_URL:
        client = AsyncIOMotorClient(TEST_MONGODB_URL, maxPoolSize=10, minPoolSize=1)
    else:
        client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest_asyncio.fixture(scope="function")
async def init_test_db(mongo_client):
    """Initialize Beanie on a throwaway database for one test."""
    db_name = f"test_winetrail_{uuid.uuid4().hex[:8]}"
    db = mongo_client[db_name]
    await init_beanie(database=db, document_models=get_document_models())
    yield db
    await mongo_client.drop_database(db_name)


async def _create_user(email: str, *, admin: bool = False, dob: datetime | None = None) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash("testpassword"),
        is_active=True,
        is_verified=True,
        is_superuser=admin,
        date_of_birth=dob,
    )
    await user.insert()
    return user


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': user.email})}"}


@asynccontextmanager
async def _client(headers: dict[str, str] | None = None):
    transport = ASGITransport(app=get_test_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers or {}) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def test_user(init_test_db) -> User:
    return await _create_user(
        "test@example.com", dob=datetime(1990, 1, 1, tzinfo=timezone.utc)
    )


@pytest_asyncio.fixture(scope="function")
async def other_user(init_test_db) -> User:
    return await _create_user("other@example.com", dob=datetime(1985, 5, 5, tzinfo=timezone.utc))


@pytest_asyncio.fixture(scope="function")
async def admin_user(init_test_db) -> User:
    return await _create_user("admin@example.com", admin=True)


@pytest_asyncio.fixture(scope="function")
async def client(test_user) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as ``test_user``."""
    async with _client(auth_headers_for(test_user)) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def other_client(other_user) -> AsyncGenerator[AsyncClient, None]:
    async with _client(auth_headers_for(other_user)) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(admin_user) -> AsyncGenerator[AsyncClient, None]:
    async with _client(auth_headers_for(admin_user)) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    async with _client() as ac:
        yield ac


@pytest.fixture
def make_winery(init_test_db) -> Callable[..., Awaitable[Winery]]:
    """Insert a listing built from :func:`winery_data` plus overrides."""

    async def factory(owner: User | None = None, **overrides: Any) -> Winery:
        winery = Winery(**winery_data(**overrides))
        if owner is not None:
            winery.owner_id = owner.id
        await winery.insert()
        return winery

    return factory


@pytest.fixture
def temp_image_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_image_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def mock_email_service():
    """Replace email delivery for both account and booking mail."""
    mock_service = AsyncMock()
    mock_service.send_verification_email = AsyncMock(return_value=True)
    mock_service.send_password_reset_email = AsyncMock(return_value=True)
    mock_service.send_booking_confirmation_email = AsyncMock(return_value=True)
    with patch("winetrail.auth.users.get_email_service", return_value=mock_service), patch(
        "winetrail.services.booking.get_email_service", return_value=mock_service
    ):
        yield mock_service


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process-wide; start every test fresh."""
    from winetrail.main import limiter as app_limiter
    from winetrail.routers.auth import limiter as auth_limiter

    app_limiter.reset()
    auth_limiter.reset()
    yield
