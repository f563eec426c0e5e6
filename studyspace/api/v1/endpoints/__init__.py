"""
API endpoints module
"""

from . import seats, availability, reservations, waitlist, admin, health

__all__ = [
    "seats",
    "availability",
    "reservations",
    "waitlist",
    "admin",
    "health"
]
