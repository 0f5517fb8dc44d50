"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database (via aiosqlite) and a
session wrapped in a transaction that rolls back afterwards. Point
``TEST_DATABASE_URL`` at a PostgreSQL database to run against asyncpg instead.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from homestay.auth.jwt import create_token_pair
from homestay.auth.passwords import hash_password
from homestay.database import Base, get_db
from homestay.main import app
from homestay.models.enums import ListingStatus, UserRole
from homestay.models.property import Property
from homestay.models.user import User

TEST_PASSWORD = "testpass123"

_test_db_url = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_engine():
    if _test_db_url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory DB
        return create_async_engine(
            _test_db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(_test_db_url, pool_pre_ping=True)


# ---------------------------------------------------------------------------
# Per-test: fresh schema and transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """Create an engine with all tables, dropped again after the test."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users, one per role
# ---------------------------------------------------------------------------


async def make_user(db: AsyncSession, role: UserRole, name: str, *, verified: bool = True) -> User:
    """Insert a user with ``TEST_PASSWORD`` directly in the DB."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=f"{role.value}-{unique}@test.com",
        hashed_password=hash_password(TEST_PASSWORD),
        name=name,
        role=role,
        verified=verified,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    """Return Authorization headers carrying an access token for ``user``."""
    tokens = create_token_pair(str(user.id))
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture
async def guest_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.GUEST, "Test Guest")


@pytest_asyncio.fixture
async def other_guest(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.GUEST, "Other Guest")


@pytest_asyncio.fixture
async def host_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.HOST, "Test Host")


@pytest_asyncio.fixture
async def other_host(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.HOST, "Other Host")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.ADMIN, "Test Admin")


@pytest_asyncio.fixture
async def payment_manager(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.PAYMENT_MANAGER, "Test Payment Manager")


@pytest_asyncio.fixture
async def field_inspector(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.FIELD_INSPECTOR, "Test Inspector")


@pytest_asyncio.fixture
async def guest_headers(guest_user: User) -> dict[str, str]:
    return headers_for(guest_user)


@pytest_asyncio.fixture
async def other_guest_headers(other_guest: User) -> dict[str, str]:
    return headers_for(other_guest)


@pytest_asyncio.fixture
async def host_headers(host_user: User) -> dict[str, str]:
    return headers_for(host_user)


@pytest_asyncio.fixture
async def other_host_headers(other_host: User) -> dict[str, str]:
    return headers_for(other_host)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)


@pytest_asyncio.fixture
async def payment_manager_headers(payment_manager: User) -> dict[str, str]:
    return headers_for(payment_manager)


@pytest_asyncio.fixture
async def field_inspector_headers(field_inspector: User) -> dict[str, str]:
    return headers_for(field_inspector)


# ---------------------------------------------------------------------------
# Listings and bookings
# ---------------------------------------------------------------------------


async def make_property(
    db: AsyncSession,
    host: User,
    *,
    title: str = "Seaside Cottage",
    location: str = "Galle, Sri Lanka",
    price_per_night: Decimal = Decimal("25000.00"),
    max_guests: int = 4,
    bedrooms: int = 2,
    status: ListingStatus = ListingStatus.APPROVED,
    verified_badge: bool = False,
) -> Property:
    """Insert a listing owned by ``host`` directly in the DB."""
    prop = Property(
        host=host,
        title=title,
        description="A quiet cottage by the sea.",
        location=location,
        address="12 Lighthouse Street",
        price_per_night=price_per_night,
        bedrooms=bedrooms,
        bathrooms=1,
        max_guests=max_guests,
        amenities=["wifi", "kitchen"],
        status=status,
        verified_badge=verified_badge,
    )
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    return prop


@pytest_asyncio.fixture
async def test_property(db_session: AsyncSession, host_user: User) -> Property:
    """An approved listing at 25000/night for up to 4 guests."""
    return await make_property(db_session, host_user)


@pytest_asyncio.fixture
async def property_factory(db_session: AsyncSession, host_user: User):
    """Return a coroutine creating extra listings, owned by ``host_user`` unless ``host=`` is given."""

    async def _create(host: User | None = None, **kwargs) -> Property:
        return await make_property(db_session, host or host_user, **kwargs)

    return _create


@pytest_asyncio.fixture
async def test_booking(client: AsyncClient, guest_headers: dict, test_property: Property) -> dict:
    """Create a 5-night pending booking via the API."""
    response = await client.post(
        "/api/v1/bookings",
        json={
            "property_id": str(test_property.id),
            "start_date": "2024-03-15",
            "end_date": "2024-03-20",
            "guest_count": 2,
        },
        headers=guest_headers,
    )
    assert response.status_code == 201, f"Failed to create test booking: {response.text}"
    return response.json()
