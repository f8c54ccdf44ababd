"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from app.api.v1.endpoints import (
    events,
    seats,
    payments,
    memberships,
    health
)

api_router = APIRouter()

# Include all routers
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(seats.router, prefix="/events", tags=["seats"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(memberships.router, prefix="/memberships", tags=["memberships"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
