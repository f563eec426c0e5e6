"""
Waitlist schemas
"""

from uuid import UUID
from pydantic import BaseModel

from studyspace.schemas.base import TimestampSchema
from studyspace.services.intervals import Slot


class WaitlistRequest(BaseModel):
    seat_id: UUID
    slot: Slot = Slot.FULL


class WaitlistEntryResponse(TimestampSchema):
    id: UUID
    seat_id: UUID
    user_id: UUID
    slot: Slot
