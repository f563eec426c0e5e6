"""
Redis connection and seat lock primitives

Redis only backs the per-seat write lock; every call goes through a circuit
breaker.
"""

import redis.asyncio as redis
from typing import Optional
import logging
import asyncio
import time

from studyspace.config import settings

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "studyspace:lock:"


class CircuitBreakerOpenError(Exception):
    """Raised when calls are refused because the breaker is open"""


class CircuitBreaker:
    """
    Closed -> open after ``failure_threshold`` consecutive failures; after
    ``reset_timeout`` seconds one trial call is let through (half-open).
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = None, reset_timeout: float = None):
        self.failure_threshold = failure_threshold or settings.REDIS_BREAKER_FAILURES
        self.reset_timeout = reset_timeout or settings.REDIS_BREAKER_RESET_SECONDS
        self.state = self.CLOSED
        self.failures = 0
        self.opened_at = 0.0
        self._lock = asyncio.Lock()

    async def _admit(self):
        async with self._lock:
            if self.state == self.OPEN:
                if time.monotonic() - self.opened_at < self.reset_timeout:
                    raise CircuitBreakerOpenError("Redis circuit breaker is open")
                self.state = self.HALF_OPEN
            elif self.state == self.HALF_OPEN:
                raise CircuitBreakerOpenError("Redis circuit breaker trial call in flight")

    async def _settle(self, ok: bool):
        async with self._lock:
            if ok:
                self.state = self.CLOSED
                self.failures = 0
                return
            self.failures += 1
            if self.state == self.HALF_OPEN or self.failures >= self.failure_threshold:
                if self.state != self.OPEN:
                    logger.warning(f"Redis circuit breaker opened after {self.failures} failures")
                self.state = self.OPEN
                self.opened_at = time.monotonic()

    async def call(self, func, *args, **kwargs):
        await self._admit()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self._settle(False)
            raise
        await self._settle(True)
        return result


class RedisManager:
    """
    Owner-tagged locks: acquire is ``SET NX EX``, release deletes the key only
    while it still holds the caller's token
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    end
    return 0
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self.client = client
        self.circuit_breaker = CircuitBreaker()

    async def connect(self) -> redis.Redis:
        if self.client is None:
            self.client = redis.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=True
            )
        return self.client

    async def close(self):
        if self.client is not None:
            await self.client.close()
            self.client = None
            logger.info("Redis connection closed")

    async def acquire_lock(self, resource: str, token: str, ttl: int) -> bool:
        client = await self.connect()
        acquired = await self.circuit_breaker.call(
            client.set, f"{LOCK_KEY_PREFIX}{resource}", token, nx=True, ex=ttl
        )
        if acquired:
            logger.debug(f"Lock acquired for {resource}")
        return bool(acquired)

    async def release_lock(self, resource: str, token: str) -> bool:
        client = await self.connect()
        try:
            result = await self.circuit_breaker.call(
                client.eval, self.RELEASE_SCRIPT, 1, f"{LOCK_KEY_PREFIX}{resource}", token
            )
        except Exception as e:
            # The key still expires on its TTL
            logger.error(f"Error releasing lock for {resource}: {e}")
            return False

        if result != 1:
            logger.warning(f"Lock for {resource} expired or changed owner before release")
            return False
        return True

    async def ping(self) -> bool:
        client = await self.connect()
        return bool(await self.circuit_breaker.call(client.ping))


redis_manager = RedisManager()


async def init_redis():
    """
    Connect the shared manager and verify the server answers
    """
    try:
        await redis_manager.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise
    logger.info("Redis connection established")


async def close_redis():
    await redis_manager.close()
