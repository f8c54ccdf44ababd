"""
Model and schema constraint tests
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import ConflictError, ValidationError
from app.models.base import utcnow
from app.models.event import Event
from app.models.membership import Membership, MembershipStatus
from app.models.payment import Payment, PaymentStatus, TERMINAL_PAYMENT_STATUSES
from app.models.seat import Seat, SeatStatus
from app.services.event_service import EventService


@pytest.mark.unit
@pytest.mark.asyncio
class TestSeatConstraints:

    async def test_seats_created_with_event(self, db_session, test_event):
        seats = test_event.seats

        assert [seat.seat_number for seat in seats] == ["A1", "A2", "B1"]
        assert all(seat.status == SeatStatus.AVAILABLE for seat in seats)
        assert all(seat.holder_id is None and seat.hold_expiry is None for seat in seats)
        assert seats[2].price == Decimal("75.50")
        assert [seat.map_position for seat in seats] == [0, 1, 2]

    async def test_seat_number_unique_per_event(self, db_session, test_event):
        db_session.add(Seat(event_id=test_event.id, seat_number="A1", price=Decimal("1.00")))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_reserved_seat_needs_holder_and_expiry(self, db_session, test_event):
        db_session.add(Seat(
            event_id=test_event.id, seat_number="C1", price=Decimal("1.00"), status=SeatStatus.RESERVED
        ))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_booked_seat_keeps_no_expiry(self, db_session, test_event, test_user):
        db_session.add(Seat(
            event_id=test_event.id,
            seat_number="C2",
            price=Decimal("1.00"),
            status=SeatStatus.BOOKED,
            holder_id=test_user.id,
            hold_expiry=utcnow(),
        ))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventService:

    async def test_duplicate_seat_numbers(self, db_session):
        with pytest.raises(ValidationError):
            await EventService.create_event(db_session, title="Dupes", seats=[("A1", 10), ("A1", 12)])

    async def test_duplicate_title(self, db_session, test_event):
        with pytest.raises(ConflictError):
            await EventService.create_event(db_session, title=test_event.title, seats=[("A1", 10)])

    async def test_list_events(self, db_session, test_event):
        events = await EventService.list_events(db_session)
        assert [event.id for event in events] == [test_event.id]


@pytest.mark.unit
@pytest.mark.asyncio
class TestMembershipConstraints:

    async def _payment(self, db_session, user, plan):
        payment = Payment(
            user_id=user.id,
            plan_id=plan.id,
            amount=plan.price,
            currency=plan.currency,
            status=PaymentStatus.SUCCEEDED,
            external_intent_id=f"pi_{uuid4().hex[:12]}",
            external_client_secret="secret",
        )
        db_session.add(payment)
        await db_session.flush()
        return payment

    async def test_one_active_membership_per_user(self, db_session, test_user, vip_plan):
        for _ in range(2):
            payment = await self._payment(db_session, test_user, vip_plan)
            db_session.add(Membership(
                user_id=test_user.id,
                plan_id=vip_plan.id,
                payment_id=payment.id,
                status=MembershipStatus.ACTIVE,
                start_date=utcnow(),
                end_date=utcnow() + timedelta(days=365),
            ))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_inactive_memberships_not_limited(self, db_session, test_user, vip_plan):
        for status in (MembershipStatus.EXPIRED, MembershipStatus.CANCELLED, MembershipStatus.ACTIVE):
            payment = await self._payment(db_session, test_user, vip_plan)
            db_session.add(Membership(
                user_id=test_user.id,
                plan_id=vip_plan.id,
                payment_id=payment.id,
                status=status,
                start_date=utcnow(),
                end_date=utcnow() + timedelta(days=365),
            ))
        await db_session.commit()

        count = len((await db_session.execute(select(Membership.id))).all())
        assert count == 3


@pytest.mark.unit
@pytest.mark.asyncio
class TestUTCDateTime:

    async def test_round_trip_stays_aware_utc(self, db_session):
        local = datetime(2025, 7, 1, 19, 30, tzinfo=timezone(timedelta(hours=1)))
        event = Event(title="Tz check", starts_at=local)
        db_session.add(event)
        await db_session.commit()

        loaded = (await db_session.execute(
            select(Event).where(Event.id == event.id).execution_options(populate_existing=True)
        )).scalar_one()

        assert loaded.starts_at.tzinfo is not None
        assert loaded.starts_at.utcoffset() == timedelta(0)
        assert loaded.starts_at == local


@pytest.mark.unit
def test_terminal_payment_statuses():
    assert PaymentStatus.PENDING.is_terminal is False
    assert PaymentStatus.PROCESSING.is_terminal is False
    assert TERMINAL_PAYMENT_STATUSES == {
        PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELED, PaymentStatus.REFUNDED
    }


@pytest.mark.unit
def test_payment_columns_track_processor_handles_only():
    columns = set(Payment.__table__.columns.keys())

    assert {"external_intent_id", "external_client_secret", "external_charge_id"} <= columns
    assert "payment_method" not in columns
