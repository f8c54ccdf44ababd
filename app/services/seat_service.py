"""
Seat reservation service

Drives the per-seat state machine:

    available --reserve--> reserved(holder, expiry) --book--> booked
    reserved --release / hold lapsed--> available

Every transition is a single conditional UPDATE keyed on the expected current
status, so concurrent callers cannot both win. Lapsed holds are released lazily
when the seat list is read or the seat is touched again; there is no timer.
"""

import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ConflictError, ExpiredError, NotFoundError
from app.core.metrics import SEAT_HOLDS_EXPIRED, record_seat_operation
from app.models.base import utcnow
from app.models.event import Event
from app.models.seat import Seat, SeatStatus
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


class SeatReservationService:
    """Reserve, book and release seats of an event"""

    def __init__(
        self,
        hold_minutes: Optional[int] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.hold_window = timedelta(minutes=hold_minutes or settings.SEAT_HOLD_MINUTES)
        self.notifier = notifier

    async def list_seats(self, db: AsyncSession, event_id: uuid.UUID) -> List[Seat]:
        """
        Return the event's seats after releasing every lapsed hold
        """
        await self._require_event(db, event_id)

        now = utcnow()
        result = await db.execute(
            update(Seat)
            .where(
                Seat.event_id == event_id,
                Seat.status == SeatStatus.RESERVED,
                Seat.hold_expiry <= now,
            )
            .values(status=SeatStatus.AVAILABLE, holder_id=None, hold_expiry=None)
            .execution_options(synchronize_session=False)
        )
        released = result.rowcount
        await db.commit()

        if released:
            SEAT_HOLDS_EXPIRED.inc(released)
            logger.info(f"Released {released} lapsed seat holds for event {event_id}")

        seats = await db.execute(
            select(Seat)
            .where(Seat.event_id == event_id)
            .order_by(Seat.map_position, Seat.seat_number)
            .execution_options(populate_existing=True)
        )
        return list(seats.scalars().all())

    async def reserve_seat(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        seat_number: str,
        user_id: uuid.UUID
    ) -> Seat:
        """
        Place a time-bounded hold on an available seat

        A seat whose previous hold has lapsed counts as available.
        """
        now = utcnow()
        result = await db.execute(
            update(Seat)
            .where(
                Seat.event_id == event_id,
                Seat.seat_number == seat_number,
                or_(
                    Seat.status == SeatStatus.AVAILABLE,
                    and_(Seat.status == SeatStatus.RESERVED, Seat.hold_expiry <= now),
                ),
            )
            .values(
                status=SeatStatus.RESERVED,
                holder_id=user_id,
                hold_expiry=now + self.hold_window,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await db.commit()  # zero rows matched, nothing to undo
            seat = await self._load_seat(db, event_id, seat_number)
            record_seat_operation("reserve", "conflict")
            raise ConflictError(
                "Seat not available",
                details={"seat_number": seat_number, "status": seat.status.value}
            )

        await db.commit()
        seat = await self._load_seat(db, event_id, seat_number)
        record_seat_operation("reserve", "success")
        logger.info(f"Seat {seat_number} of event {event_id} reserved by user {user_id} until {seat.hold_expiry.isoformat()}")
        return seat

    async def book_seat(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        seat_number: str,
        user_id: uuid.UUID
    ) -> Seat:
        """
        Turn the caller's live hold into a booking

        Raises ExpiredError (and frees the seat) if the caller's hold lapsed.
        """
        now = utcnow()
        result = await db.execute(
            update(Seat)
            .where(
                Seat.event_id == event_id,
                Seat.seat_number == seat_number,
                Seat.status == SeatStatus.RESERVED,
                Seat.holder_id == user_id,
                Seat.hold_expiry > now,
            )
            .values(status=SeatStatus.BOOKED, hold_expiry=None)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 1:
            await db.commit()
            seat = await self._load_seat(db, event_id, seat_number)
            record_seat_operation("book", "success")
            logger.info(f"Seat {seat_number} of event {event_id} booked by user {user_id}")
            await self._notify_booked(seat)
            return seat

        await db.commit()  # zero rows matched, nothing to undo
        seat = await self._load_seat(db, event_id, seat_number)

        if (
            seat.status == SeatStatus.RESERVED
            and seat.holder_id == user_id
            and seat.hold_expiry <= now
        ):
            # The caller's own hold has lapsed: free the seat, then report expiry
            await db.execute(
                update(Seat)
                .where(
                    Seat.id == seat.id,
                    Seat.status == SeatStatus.RESERVED,
                    Seat.holder_id == user_id,
                    Seat.hold_expiry <= now,
                )
                .values(status=SeatStatus.AVAILABLE, holder_id=None, hold_expiry=None)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            record_seat_operation("book", "expired")
            SEAT_HOLDS_EXPIRED.inc()
            logger.info(f"Hold on seat {seat_number} of event {event_id} expired before booking by user {user_id}")
            raise ExpiredError(
                "Reservation expired",
                details={"seat_number": seat_number, "expired_at": seat.hold_expiry.isoformat()}
            )

        record_seat_operation("book", "conflict")
        raise ConflictError(
            "Seat is not reserved by this user",
            details={"seat_number": seat_number, "status": seat.status.value}
        )

    async def release_seat(
        self,
        db: AsyncSession,
        event_id: uuid.UUID,
        seat_number: str,
        user_id: uuid.UUID
    ) -> Seat:
        """
        Give up the caller's hold before it lapses
        """
        result = await db.execute(
            update(Seat)
            .where(
                Seat.event_id == event_id,
                Seat.seat_number == seat_number,
                Seat.status == SeatStatus.RESERVED,
                Seat.holder_id == user_id,
            )
            .values(status=SeatStatus.AVAILABLE, holder_id=None, hold_expiry=None)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await db.commit()  # zero rows matched, nothing to undo
            seat = await self._load_seat(db, event_id, seat_number)
            record_seat_operation("release", "conflict")
            raise ConflictError(
                "Seat is not reserved by this user",
                details={"seat_number": seat_number, "status": seat.status.value}
            )

        await db.commit()
        record_seat_operation("release", "success")
        logger.info(f"Seat {seat_number} of event {event_id} released by user {user_id}")
        return await self._load_seat(db, event_id, seat_number)

    async def _require_event(self, db: AsyncSession, event_id: uuid.UUID) -> None:
        result = await db.execute(select(Event.id).where(Event.id == event_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Event", event_id)

    async def _load_seat(self, db: AsyncSession, event_id: uuid.UUID, seat_number: str) -> Seat:
        result = await db.execute(
            select(Seat)
            .where(Seat.event_id == event_id, Seat.seat_number == seat_number)
            .execution_options(populate_existing=True)
        )
        seat = result.scalar_one_or_none()
        if seat is None:
            await self._require_event(db, event_id)
            raise NotFoundError("Seat", seat_number)
        return seat

    async def _notify_booked(self, seat: Seat) -> None:
        if self.notifier is None:
            return
        await self.notifier.notify(
            seat.holder_id,
            title="Seat booked",
            content=f"Your booking for seat {seat.seat_number} is confirmed.",
            data={"event_id": seat.event_id, "seat_number": seat.seat_number},
        )
