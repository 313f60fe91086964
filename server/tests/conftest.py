"""Test configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BEARER_TOKEN_SECRET", "kashiyatra-test-secret-0123456789abcdef")

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from kashiyatra.core.config import settings
from kashiyatra.core.database import Base, create_schema, get_db
from kashiyatra.schemas.package import CreatePackageRequest
from kashiyatra.services.package_service import PackageService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
ADMIN_ID = "admin-1"


def make_token(user_id: str, roles: tuple = ()) -> str:
    """Sign a bearer token the API will accept."""
    payload = {
        "sub": user_id,
        "roles": list(roles),
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: str, roles: tuple = ()) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine with the schema and booking sequence."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    await create_schema(engine)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create the application with the database dependency pointed at the test session."""
    from kashiyatra.main import create_app

    app = create_app()

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def traveler_user():
    """Authenticated non-admin user, as returned by get_current_user."""
    return {"user_id": USER_ID, "username": "asha", "email": "asha@example.com", "roles": []}


@pytest.fixture
def other_user():
    return {"user_id": OTHER_USER_ID, "username": "ravi", "email": "ravi@example.com", "roles": []}


@pytest.fixture
def admin_user():
    return {"user_id": ADMIN_ID, "username": "admin", "email": "admin@example.com", "roles": ["admin"]}


@pytest.fixture
def user_headers():
    return auth_headers(USER_ID)


@pytest.fixture
def other_user_headers():
    return auth_headers(OTHER_USER_ID)


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, roles=("admin",))


@pytest.fixture
def sample_package_data():
    """Sample package document for testing."""
    return {
        "name": "Kashi Vishwanath Darshan",
        "description": "Three days of temple visits and the evening Ganga aarti",
        "shortDescription": "Temples and the Ganga aarti",
        "price": 1500000,
        "originalPrice": 1800000,
        "duration": {"days": 3, "nights": 2},
        "categories": ["spiritual", "cultural"],
        "inclusions": ["Hotel stay", "Breakfast", "Local guide"],
        "exclusions": ["Flights"],
        "itinerary": [
            {"day": 1, "title": "Arrival and aarti", "activities": ["Dashashwamedh Ghat"], "meals": "dinner"},
        ],
        "images": [{"url": "https://example.com/ghat.jpg", "alt": "Ghats at dusk"}],
        "highlights": ["Ganga aarti"],
        "difficulty": "easy",
        "maxTravelers": 8,
        "availableDates": ["2024-11-01", "2024-12-01"],
    }


@pytest_asyncio.fixture
async def package(test_session, sample_package_data):
    """A persisted active package."""
    service = PackageService(test_session)
    return await service.create_package(
        CreatePackageRequest.model_validate(sample_package_data),
        created_by=ADMIN_ID,
    )


@pytest.fixture
def sample_booking_data(package):
    """Sample booking request document against the persisted package."""
    return {
        "package": str(package.id),
        "travelers": [
            {"name": "Asha Verma", "age": 34, "gender": "female", "idProof": "aadhar", "idNumber": "1234-5678"},
            {"name": "Vikram Verma", "age": 36, "gender": "male"},
        ],
        "tripDetails": {"startDate": "2024-01-30", "duration": 3},
        "contactInfo": {
            "email": "asha@example.com",
            "phone": "+91-9800000000",
            "emergencyContact": {"name": "Meera", "phone": "+91-9811111111", "relation": "sister"},
        },
        "pricing": {
            "packagePrice": 3000000,
            "extraCharges": 50000,
            "discount": 100000,
            "taxAmount": 150000,
            "totalAmount": 3050000,
            "finalAmount": 3100000,
        },
        "paymentMethod": "upi",
        "specialRequests": "Ground floor room",
    }
