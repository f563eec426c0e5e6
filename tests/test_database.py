"""
Tests for the store's retry policy and fail-closed transactions
"""

import pytest
from unittest.mock import AsyncMock

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from studyspace.config import settings
from studyspace.core.database import DatabaseManager
from studyspace.core.exceptions import StoreUnavailableError, ValidationError
from studyspace.models.seat import Seat
from studyspace.services.intervals import Slot

from conftest import utc


def store_down():
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"))


@pytest.mark.unit
@pytest.mark.asyncio
class TestReadWithRetry:

    async def test_transient_failure_is_retried(self):
        func = AsyncMock(side_effect=[store_down(), ["row"]])

        result = await DatabaseManager().read_with_retry("grid", func, retries=2)

        assert result == ["row"]
        assert func.await_count == 2

    async def test_gives_up_as_store_unavailable(self):
        func = AsyncMock(side_effect=store_down())

        with pytest.raises(StoreUnavailableError) as exc_info:
            await DatabaseManager().read_with_retry("availability check", func, retries=2)

        assert func.await_count == 3
        assert exc_info.value.status_code == 503

    async def test_other_errors_are_not_retried(self):
        func = AsyncMock(side_effect=ValidationError("bad input"))

        with pytest.raises(ValidationError):
            await DatabaseManager().read_with_retry("grid", func, retries=2)

        assert func.await_count == 1


@pytest.mark.integration
@pytest.mark.asyncio
class TestTransaction:

    async def test_operational_error_maps_to_503_and_rolls_back(self, db_session):
        manager = DatabaseManager()

        with pytest.raises(StoreUnavailableError):
            async with manager.transaction(db_session):
                db_session.add(Seat(seat_number=99))
                await db_session.flush()
                raise store_down()

        result = await db_session.execute(select(func.count(Seat.id)))
        assert result.scalar_one() == 0

    async def test_commits_on_clean_exit(self, db_session):
        async with DatabaseManager().transaction(db_session):
            db_session.add(Seat(seat_number=1))

        result = await db_session.execute(select(func.count(Seat.id)))
        assert result.scalar_one() == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_availability_check_store_outage(db_session, seats, reservation_service, monkeypatch):
    monkeypatch.setattr(settings, "STORE_READ_RETRIES", 1)
    lookup = AsyncMock(side_effect=store_down())
    monkeypatch.setattr(reservation_service, "active_reservations", lookup)

    with pytest.raises(StoreUnavailableError):
        await reservation_service.check(
            db_session, seats[0].id, utc(2025, 1, 10, 4), utc(2025, 1, 10, 12), Slot.DAY
        )

    assert lookup.await_count == 2
