"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class StudySpaceException(Exception):
    """Base exception for StudySpace application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(StudySpaceException):
    """Authentication related errors"""

    def __init__(self, message: str = "Could not validate credentials", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(StudySpaceException):
    """Authorization related errors"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(StudySpaceException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class ValidationError(StudySpaceException):
    """Request validation errors, raised before any conflict check"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class ConflictError(StudySpaceException):
    """Resource conflict errors"""

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class SeatUnavailableError(ConflictError):
    """Seat was taken between the availability check and the insert"""

    def __init__(self, seat_id: Any, slot: Optional[str] = None):
        details = {"seat_id": str(seat_id)}
        if slot:
            details["slot"] = slot
        super().__init__(
            message="Selected seat is no longer available",
            code="SEAT_UNAVAILABLE",
            details=details
        )


class InvalidTransitionError(ConflictError):
    """Reservation status transition not allowed"""

    def __init__(self, reservation_id: Any, from_status: str, to_status: str):
        super().__init__(
            message=f"Cannot move reservation from {from_status} to {to_status}",
            code="INVALID_TRANSITION",
            details={
                "reservation_id": str(reservation_id),
                "from_status": from_status,
                "to_status": to_status
            }
        )


class LockAcquisitionError(ConflictError):
    """Failed to acquire lock error"""

    def __init__(self, resource: str):
        super().__init__(
            message=f"Failed to acquire lock for resource: {resource}",
            code="LOCK_FAILED",
            details={"resource": resource}
        )


class StoreUnavailableError(StudySpaceException):
    """Reservation store could not be read or written"""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Reservation store unavailable during {operation}",
            code="STORE_UNAVAILABLE",
            status_code=503,
            details={"operation": operation}
        )
