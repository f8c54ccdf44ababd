"""
Event service: events are created together with their fixed seat map
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.seat import Seat, SeatStatus

logger = logging.getLogger(__name__)


class EventService:
    """Service for event and seat map management"""

    @staticmethod
    async def create_event(
        db: AsyncSession,
        title: str,
        seats: Iterable[Tuple[str, Decimal]],
        description: Optional[str] = None,
        venue_name: Optional[str] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        timezone_name: str = "Europe/London",
    ) -> Event:
        seat_map = [(str(number), Decimal(price)) for number, price in seats]
        numbers = [number for number, _ in seat_map]
        if len(numbers) != len(set(numbers)):
            raise ValidationError("Seat numbers must be unique within an event", field="seats")
        if any(price < 0 for _, price in seat_map):
            raise ValidationError("Seat price cannot be negative", field="seats")

        event = Event(
            title=title,
            description=description,
            venue_name=venue_name,
            city=city,
            country=country,
            starts_at=starts_at,
            timezone=timezone_name,
            seats=[
                Seat(seat_number=number, price=price, status=SeatStatus.AVAILABLE, map_position=index)
                for index, (number, price) in enumerate(seat_map)
            ],
        )
        db.add(event)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(f"Event '{title}' already exists")

        logger.info(f"Event created: {event.id} with {len(seat_map)} seats")
        return await EventService.get_event(db, event.id)

    @staticmethod
    async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
        result = await db.execute(
            select(Event)
            .options(selectinload(Event.seats))
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    @staticmethod
    async def list_events(db: AsyncSession) -> List[Event]:
        result = await db.execute(select(Event).order_by(Event.starts_at, Event.title))
        return list(result.scalars().all())
