"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from studyspace.api.v1.endpoints import (
    seats,
    availability,
    reservations,
    waitlist,
    admin,
    health
)

api_router = APIRouter()

# Include all routers
api_router.include_router(seats.router, prefix="/seats", tags=["seats"])
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
api_router.include_router(waitlist.router, prefix="/waitlist", tags=["waitlist"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
