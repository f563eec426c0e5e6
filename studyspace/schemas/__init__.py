"""
Pydantic schemas for request and response validation
"""

from studyspace.schemas.seat import (
    SeatResponse,
    SeatGridResponse,
    SeatStatusResponse
)
from studyspace.schemas.reservation import (
    BookingRequest,
    MembershipRequest,
    RejectRequest,
    ReservationResponse,
    ReservationSummary,
    BookingResultResponse,
    ExpiringMembershipResponse
)
from studyspace.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    NextAvailabilityResponse
)
from studyspace.schemas.waitlist import (
    WaitlistRequest,
    WaitlistEntryResponse
)
from studyspace.schemas.response import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "SeatResponse",
    "SeatGridResponse",
    "SeatStatusResponse",
    "BookingRequest",
    "MembershipRequest",
    "RejectRequest",
    "ReservationResponse",
    "ReservationSummary",
    "BookingResultResponse",
    "ExpiringMembershipResponse",
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "NextAvailabilityResponse",
    "WaitlistRequest",
    "WaitlistEntryResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse"
]
