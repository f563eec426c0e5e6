"""
Error envelope and probe payloads
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Dict
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Envelope for every non-2xx response"""
    success: bool = False
    error: ErrorDetail
    timestamp: datetime = Field(default_factory=_now)


class HealthResponse(BaseModel):
    status: str
    checks: Optional[Dict[str, bool]] = None
    version: Optional[str] = None
