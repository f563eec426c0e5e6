"""
Per-seat write serialisation

Every reservation insert for a seat runs while holding that seat's lock, so
the availability re-check and the insert cannot interleave with another
writer for the same seat.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from studyspace.config import settings
from studyspace.core.exceptions import LockAcquisitionError, StoreUnavailableError
from studyspace.core.redis import RedisManager, redis_manager

logger = logging.getLogger(__name__)


def seat_resource(seat_id) -> str:
    return f"seat:{seat_id}"


class SeatLockManager:
    """Interface: ``async with locks.hold(seat_id): ...``"""

    @asynccontextmanager
    async def hold(self, seat_id) -> AsyncIterator[None]:
        raise NotImplementedError
        yield  # pragma: no cover


class RedisSeatLock(SeatLockManager):
    """
    Distributed per-seat lock for multi-worker deployments
    """

    def __init__(
        self,
        manager: RedisManager = None,
        ttl: int = None,
        attempts: int = 5
    ):
        self.manager = manager or redis_manager
        self.ttl = ttl or settings.SEAT_LOCK_TTL_SECONDS
        self.attempts = attempts

    async def _acquire(self, resource: str, token: str) -> bool:
        for attempt in range(self.attempts):
            try:
                acquired = await self.manager.acquire_lock(resource, token, ttl=self.ttl)
            except Exception as e:
                logger.error(f"Seat lock backend unavailable for {resource}: {e}")
                raise StoreUnavailableError("seat lock") from e
            if acquired:
                return True
            await asyncio.sleep(min(0.05 * (2 ** attempt), 0.5))
        return False

    @asynccontextmanager
    async def hold(self, seat_id) -> AsyncIterator[None]:
        resource = seat_resource(seat_id)
        token = str(uuid.uuid4())

        if not await self._acquire(resource, token):
            logger.warning(f"Could not acquire lock for {resource} after {self.attempts} attempts")
            raise LockAcquisitionError(resource)

        try:
            yield
        finally:
            await self.manager.release_lock(resource, token)


class LocalSeatLock(SeatLockManager):
    """
    In-process per-seat lock for single-worker deployments and tests
    """

    def __init__(self, timeout: float = None):
        self.timeout = timeout or float(settings.SEAT_LOCK_TTL_SECONDS)
        self._locks: Dict[str, asyncio.Lock] = {}
        # Holders plus waiters per resource; the entry goes when it reaches zero
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, seat_id) -> AsyncIterator[None]:
        resource = seat_resource(seat_id)
        lock = self._locks.setdefault(resource, asyncio.Lock())
        self._users[resource] = self._users.get(resource, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise LockAcquisitionError(resource)

            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[resource] -= 1
            if self._users[resource] == 0:
                del self._users[resource]
                del self._locks[resource]


def create_seat_lock_manager(backend: str = None) -> SeatLockManager:
    backend = backend or settings.SEAT_LOCK_BACKEND
    if backend == "local":
        return LocalSeatLock()
    return RedisSeatLock()
