"""Test configuration and fixtures."""

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count
from typing import Optional
from uuid import UUID

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from venue_booking.core.config import settings
from venue_booking.core.context import RequestContext, Role
from venue_booking.core.database import Base, get_db
from venue_booking.core.locking import VenueLockRegistry
from venue_booking.core.rate_limit import InMemoryRateLimiter
from venue_booking.models import Booking, BookingStatus, Customer, Hotel, TaxStrategy, Venue
from venue_booking.services.booking_service import BookingService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday, a fixed day so scheduling tests read like the business scenarios
EVENT_DAY = datetime(2030, 6, 3)

_sequence = count(1)


def _at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
    """Naive UTC datetime on the shared event day."""
    return EVENT_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)


@pytest.fixture
def at():
    """Build naive UTC datetimes on the shared event day: at(10), at(13, 30), at(9, day_offset=1)."""
    return _at


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def venue_locks():
    """A fresh lock registry bound to the test's event loop."""
    return VenueLockRegistry()


@pytest.fixture
def booking_service(test_session, venue_locks):
    return BookingService(test_session, venue_locks)


# Reference data is written through its own session so that rollbacks in the
# session under test never expire the fixture objects.

@pytest.fixture
def hotel_factory(session_factory):
    async def create(**overrides) -> Hotel:
        n = next(_sequence)
        values = {
            "name": f"Hotel {n}",
            "subdomain": f"hotel-{n}",
            "tax_strategy": TaxStrategy.STANDARD,
            "vat_rate": Decimal("15.00"),
            "service_charge_rate": Decimal("10.00"),
            "currency": "USD",
            "allow_capacity_override": False,
        }
        values.update(overrides)
        hotel = Hotel(**values)
        async with session_factory() as session:
            session.add(hotel)
            await session.commit()
        return hotel

    return create


@pytest.fixture
def venue_factory(session_factory):
    async def create(hotel: Hotel, **overrides) -> Venue:
        n = next(_sequence)
        values = {
            "hotel_id": hotel.id,
            "name": f"Ballroom {n}",
            "slug": f"ballroom-{n}",
            "capacity_banquet": 200,
            "base_price": Decimal("1000.00"),
            "is_active": True,
        }
        values.update(overrides)
        venue = Venue(**values)
        async with session_factory() as session:
            session.add(venue)
            await session.commit()
        return venue

    return create


@pytest.fixture
def customer_factory(session_factory):
    async def create(hotel: Hotel, **overrides) -> Customer:
        n = next(_sequence)
        values = {
            "hotel_id": hotel.id,
            "company_name": f"Customer {n}",
            "contact_name": "Sam Rivera",
            "email": f"customer{n}@example.com",
        }
        values.update(overrides)
        customer = Customer(**values)
        async with session_factory() as session:
            session.add(customer)
            await session.commit()
        return customer

    return create


@pytest.fixture
def booking_factory(session_factory):
    """Insert a booking row directly, bypassing the booking engine."""
    async def create(
        venue: Venue,
        customer: Customer,
        start: datetime,
        end: datetime,
        status: BookingStatus = BookingStatus.CONFIRMED,
        **overrides,
    ) -> Booking:
        n = next(_sequence)
        values = {
            "booking_number": f"BK-T{n:05d}",
            "hotel_id": venue.hotel_id,
            "venue_id": venue.id,
            "customer_id": customer.id,
            "created_by_id": "seed",
            "event_name": f"Seeded event {n}",
            "event_date": start.date(),
            "start_time": start,
            "end_time": end,
            "guest_count": 50,
            "guaranteed_pax": 50,
            "status": status,
            "base_price": Decimal("1000.00"),
            "service_charge": Decimal("100.00"),
            "vat": Decimal("150.00"),
            "total_amount": Decimal("1250.00"),
            "currency": "USD",
            "vat_rate_snapshot": Decimal("15.00"),
            "service_charge_rate_snapshot": Decimal("10.00"),
            "tax_strategy_snapshot": TaxStrategy.STANDARD,
        }
        values.update(overrides)
        booking = Booking(**values)
        async with session_factory() as session:
            session.add(booking)
            await session.commit()
        return booking

    return create


@pytest_asyncio.fixture
async def hotel(hotel_factory):
    return await hotel_factory()


@pytest_asyncio.fixture
async def venue(venue_factory, hotel):
    return await venue_factory(hotel)


@pytest_asyncio.fixture
async def customer(customer_factory, hotel):
    return await customer_factory(hotel)


@pytest.fixture
def admin_ctx(hotel):
    """Hotel admin of the default hotel."""
    return RequestContext.build(user_id="admin-1", role=Role.HOTEL_ADMIN, hotel_id=hotel.id)


@pytest.fixture
def sales_ctx(hotel):
    return RequestContext.build(user_id="sales-1", role=Role.SALES, hotel_id=hotel.id)


@pytest.fixture
def impersonation_ctx(hotel):
    """Platform administrator acting inside the default hotel."""
    return RequestContext.build(
        user_id="super-1",
        role=Role.SUPER_ADMIN,
        hotel_id=hotel.id,
        impersonated_by="super-1",
    )


@pytest.fixture
def customer_ctx():
    return RequestContext.build(user_id="marketplace-user-1", role=Role.CUSTOMER)


@pytest.fixture
def booking_payload(venue, customer):
    """Build a CreateBookingRequest payload for the default venue and customer."""
    def build(start: datetime = None, end: datetime = None, **overrides) -> dict:
        payload = {
            "venue_id": venue.id,
            "customer_id": customer.id,
            "event_name": "Annual Gala",
            "event_type": "gala",
            "start_time": start or _at(10),
            "end_time": end or _at(14),
            "guest_count": 120,
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def make_token():
    """Sign a bearer token the way the identity provider does."""
    def sign(
        user_id: str,
        role: Role,
        hotel_id: Optional[UUID] = None,
        impersonated_by: Optional[str] = None,
    ) -> dict:
        claims = {"sub": user_id, "role": role.value}
        if hotel_id is not None:
            claims["hotel_id"] = str(hotel_id)
        if impersonated_by is not None:
            claims["impersonated_by"] = impersonated_by
        token = jwt.encode(claims, settings.bearer_token_secret, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return sign


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, venue_locks):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware

    from venue_booking.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
        request_validation_handler,
    )
    from venue_booking.routers import audit, booking, health, marketplace, metrics

    # Create a simplified test app without lifespan
    app = FastAPI(
        title="Venue Booking API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    app.state.venue_locks = venue_locks
    app.state.rate_limiter = InMemoryRateLimiter(limit=3, window_seconds=900)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Simplified for tests
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Register API routers
    app.include_router(health.probe_router)
    app.include_router(health.router)
    app.include_router(booking.router)
    app.include_router(marketplace.router)
    app.include_router(audit.router)
    app.include_router(metrics.router)

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
