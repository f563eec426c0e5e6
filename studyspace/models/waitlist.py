"""
Waitlist model
"""

from sqlalchemy import Column, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship

from studyspace.models.base import BaseModel, enum_values
from studyspace.services.intervals import Slot


class WaitlistEntry(BaseModel):
    """
    Unfulfilled claim on a seat/slot. Removed only by an administrator.
    """
    __tablename__ = "waitlist"

    seat_id = Column(Uuid(as_uuid=True), ForeignKey("seats.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    slot = Column(Enum(Slot, name="slot", values_callable=enum_values), nullable=False)

    # Relationships
    seat = relationship("Seat", back_populates="waitlist_entries")
    user = relationship("User", back_populates="waitlist_entries")

    def __repr__(self):
        return f"<WaitlistEntry(id={self.id}, seat_id={self.seat_id}, user_id={self.user_id}, slot={self.slot})>"
