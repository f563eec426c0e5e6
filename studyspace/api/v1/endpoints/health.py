"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from studyspace.config import settings
from studyspace.core.database import get_session
from studyspace.core.redis import redis_manager
from studyspace.schemas.response import HealthResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness():
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "studyspace-api"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)):
    """
    Kubernetes readiness probe - checks the reservation store and, when
    seat locks live in Redis, the lock backend
    """
    checks = {"database": False}

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")

    if settings.SEAT_LOCK_BACKEND == "redis":
        try:
            checks["redis"] = bool(await redis_manager.ping())
        except Exception as e:
            logger.warning(f"Readiness: redis check failed: {e}")
            checks["redis"] = False

    ready = all(checks.values())
    body = HealthResponse(
        status="ready" if ready else "not ready",
        checks=checks,
        version=settings.APP_VERSION
    )
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
