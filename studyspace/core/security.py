"""
Bearer token verification

Tokens are issued by the external authentication service; this module only
verifies them and exposes the caller's identity and role.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import logging

from studyspace.config import settings
from studyspace.core.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token the way the auth service does (used by tooling and tests)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT access token
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise AuthenticationError()

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type. Expected access")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> CurrentUser:
    """
    Resolve the caller from the bearer token
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(credentials.credentials)
    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError()

    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Malformed subject claim")

    return CurrentUser(id=user_id, role=payload.get("role", "user"))


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Require admin role for endpoint
    """
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user
