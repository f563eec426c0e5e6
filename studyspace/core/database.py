"""
Database configuration and session management
"""

from typing import AsyncGenerator, Awaitable, Callable, TypeVar
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool
import logging
import asyncio
from contextlib import asynccontextmanager

from studyspace.config import settings
from studyspace.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Create async engine
if settings.is_testing or settings.DATABASE_URL.startswith("sqlite"):
    # NullPool doesn't accept pool parameters
    engine: AsyncEngine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        poolclass=NullPool,
    )
else:
    engine: AsyncEngine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        poolclass=AsyncAdaptedQueuePool,
    )

# Create async session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base
Base = declarative_base()


async def init_db():
    """
    Initialize database connections
    """
    # Import models so every table is registered on Base.metadata
    import studyspace.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db():
    """
    Close database connections
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session with explicit transaction management
    Each service call must use explicit transaction boundaries
    """
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


class DatabaseManager:
    """
    Transaction handling and retry policy for the reservation store
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or async_session
        self.logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def transaction(self, session: AsyncSession):
        """
        Run the block inside one transaction on ``session``.

        Commits on clean exit, rolls back on any exception. Driver-level
        failures are re-raised as StoreUnavailableError so callers never
        treat an unacknowledged write as successful.
        """
        try:
            if session.in_transaction():
                # Autobegun by an earlier read on this session
                yield session
                await session.commit()
            else:
                async with session.begin():
                    yield session
        except (OperationalError, DBAPIError) as e:
            await session.rollback()
            self.logger.error(f"Transaction rolled back: {type(e).__name__}: {e}")
            if isinstance(e, OperationalError) or e.connection_invalidated:
                raise StoreUnavailableError("write") from e
            raise
        except Exception as e:
            await session.rollback()
            self.logger.error(f"Transaction rolled back: {type(e).__name__}: {e}")
            raise

    async def read_with_retry(
        self,
        operation: str,
        func: Callable[[], Awaitable[T]],
        retries: int = None
    ) -> T:
        """
        Run a read-only query, retrying transient store failures with
        exponential backoff
        """
        attempts = settings.STORE_READ_RETRIES if retries is None else retries
        for attempt in range(attempts + 1):
            try:
                return await func()
            except OperationalError as e:
                if attempt >= attempts:
                    self.logger.error(f"Store read '{operation}' failed after {attempt + 1} attempts: {e}")
                    raise StoreUnavailableError(operation) from e
                delay = min(0.1 * (2 ** attempt), 1.0)
                self.logger.warning(f"Store read '{operation}' failed, retrying in {delay:.1f}s: {e}")
                await asyncio.sleep(delay)

    async def get_or_create(self, session: AsyncSession, model, defaults=None, **kwargs):
        """
        Get or create a database record
        """
        from sqlalchemy import select

        stmt = select(model).filter_by(**kwargs)
        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()

        if instance:
            return instance, False

        params = {**kwargs, **(defaults or {})}
        instance = model(**params)
        session.add(instance)
        await session.flush()
        return instance, True


# Create global database manager
db_manager = DatabaseManager()
