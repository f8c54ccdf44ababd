"""
Event endpoints
"""

from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_event_service
from app.core.database import get_session
from app.core.permissions import Permission
from app.core.security import get_current_user, require_permission
from app.models.user import User
from app.schemas.event import EventCreate, EventDetailResponse, EventResponse
from app.services.event_service import EventService

router = APIRouter()


@router.post("/", response_model=EventDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(require_permission(Permission.EVENTS_MANAGE)),
    db: AsyncSession = Depends(get_session),
    events: EventService = Depends(get_event_service)
) -> Any:
    """
    Create an event with its fixed seat map
    """
    return await events.create_event(
        db,
        title=event_data.title,
        seats=[(seat.seat_number, seat.price) for seat in event_data.seats],
        description=event_data.description,
        venue_name=event_data.venue_name,
        city=event_data.city,
        country=event_data.country,
        starts_at=event_data.starts_at,
        timezone_name=event_data.timezone,
    )


@router.get("/", response_model=List[EventResponse])
async def list_events(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    events: EventService = Depends(get_event_service)
) -> Any:
    return await events.list_events(db)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    events: EventService = Depends(get_event_service)
) -> Any:
    return await events.get_event(db, event_id)
