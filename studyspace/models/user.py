"""
User model
"""

from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship
import enum

from studyspace.models.base import BaseModel, enum_values


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """
    Member profile, owned by the authentication service and mirrored here
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20))
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False
    )

    # Relationships
    reservations = relationship("Reservation", back_populates="user")
    waitlist_entries = relationship("WaitlistEntry", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
