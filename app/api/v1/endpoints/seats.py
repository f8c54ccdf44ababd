"""
Seat reservation endpoints
"""

from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_seat_service
from app.core.database import get_session
from app.core.permissions import Permission
from app.core.security import get_current_user, require_permission
from app.models.user import User
from app.schemas.seat import SeatResponse
from app.services.seat_service import SeatReservationService

router = APIRouter()


@router.get("/{event_id}/seats", response_model=List[SeatResponse])
async def list_seats(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    seats: SeatReservationService = Depends(get_seat_service)
) -> Any:
    """
    Seat map of an event; lapsed holds show as available
    """
    return await seats.list_seats(db, event_id)


@router.post("/{event_id}/seats/{seat_number}/reserve", response_model=SeatResponse)
async def reserve_seat(
    event_id: UUID,
    seat_number: str,
    current_user: User = Depends(require_permission(Permission.SEATS_RESERVE)),
    db: AsyncSession = Depends(get_session),
    seats: SeatReservationService = Depends(get_seat_service)
) -> Any:
    """
    Hold a seat for the configured hold window
    """
    return await seats.reserve_seat(db, event_id, seat_number, current_user.id)


@router.post("/{event_id}/seats/{seat_number}/book", response_model=SeatResponse)
async def book_seat(
    event_id: UUID,
    seat_number: str,
    current_user: User = Depends(require_permission(Permission.SEATS_RESERVE)),
    db: AsyncSession = Depends(get_session),
    seats: SeatReservationService = Depends(get_seat_service)
) -> Any:
    """
    Book a seat the caller currently holds
    """
    return await seats.book_seat(db, event_id, seat_number, current_user.id)


@router.post("/{event_id}/seats/{seat_number}/release", response_model=SeatResponse)
async def release_seat(
    event_id: UUID,
    seat_number: str,
    current_user: User = Depends(require_permission(Permission.SEATS_RESERVE)),
    db: AsyncSession = Depends(get_session),
    seats: SeatReservationService = Depends(get_seat_service)
) -> Any:
    return await seats.release_seat(db, event_id, seat_number, current_user.id)
