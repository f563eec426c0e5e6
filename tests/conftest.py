"""
Test configuration and fixtures
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import datetime, timezone
from uuid import uuid4
import os

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "studyspace-test-secret-key-0123456789abcdef"
os.environ["SEAT_LOCK_BACKEND"] = "local"
os.environ["LOG_LEVEL"] = "WARNING"

# Import all models BEFORE creating fixtures (create_all needs them registered)
from studyspace.core.database import Base
from studyspace.models.user import User, UserRole
from studyspace.models.seat import Seat
from studyspace.models.reservation import (
    Reservation, ReservationStatus, PaymentStatus, SeatCategory
)
from studyspace.models.waitlist import WaitlistEntry
from studyspace.models.seat_status import SeatStatusSnapshot
from studyspace.core.locks import LocalSeatLock
from studyspace.core.security import create_access_token
from studyspace.services.intervals import DatePeriod, Slot
from studyspace.services.next_available import membership_interval
from studyspace.services.reservation_service import ReservationService
from studyspace.services.seat_catalog import provision_seats

TEST_SEAT_COUNT = 20


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """In-memory SQLite engine; StaticPool keeps every session on one database"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_db):
    return async_sessionmaker(test_db, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def seats(db_session):
    """Provisioned seat catalog, ordered by seat number"""
    await provision_seats(db_session, TEST_SEAT_COUNT)
    await db_session.commit()
    result = await db_session.execute(select(Seat).order_by(Seat.seat_number))
    return list(result.scalars().all())


async def _create_user(db_session, full_name, role=UserRole.USER):
    user = User(
        email=f"{role.value}_{uuid4().hex[:8]}@example.com",
        full_name=full_name,
        phone="+919800000000",
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    return await _create_user(db_session, "Asha Verma")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await _create_user(db_session, "Rahul Nair")


@pytest_asyncio.fixture
async def test_admin(db_session):
    return await _create_user(db_session, "Front Desk", role=UserRole.ADMIN)


@pytest.fixture
def reservation_service():
    return ReservationService(locks=LocalSeatLock(timeout=5))


@pytest.fixture
def make_reservation(db_session):
    """Factory inserting a reservation directly, bypassing the booking flow"""

    async def _make(
        user,
        seat=None,
        start=None,
        end=None,
        slot=Slot.FULL,
        status=ReservationStatus.CONFIRMED,
        payment_status=None,
        membership=None,
        created_at=None,
    ):
        if payment_status is None:
            payment_status = {
                ReservationStatus.CONFIRMED: PaymentStatus.PAID,
                ReservationStatus.PENDING: PaymentStatus.PENDING,
                ReservationStatus.CANCELLED: PaymentStatus.FAILED,
                ReservationStatus.TIMED_OUT: PaymentStatus.TIMED_OUT,
            }[status]

        values = dict(
            user=user,
            seat_id=seat.id if seat is not None else None,
            category=SeatCategory.FIXED if seat is not None else SeatCategory.FLOATING,
            slot=slot,
            status=status,
            payment_status=payment_status,
        )
        if membership is not None:
            period = DatePeriod(*membership)
            interval = membership_interval(period)
            values.update(
                start_time=interval.start,
                end_time=interval.end,
                membership_start_date=period.start,
                membership_end_date=period.end,
                duration_months=1,
            )
        else:
            values.update(start_time=start, end_time=end)
        if created_at is not None:
            values["created_at"] = created_at

        reservation = Reservation(**values)
        db_session.add(reservation)
        await db_session.commit()
        return reservation

    return _make


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def auth_headers(user) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with dependency override"""
    from studyspace.main import app
    from studyspace.core.database import get_session

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
