"""
Concurrency tests for seat reservation
Concurrent callers each use their own session and connection
"""

import asyncio

import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError
from app.models.seat import Seat, SeatStatus
from app.models.user import User, UserRole


@pytest.mark.concurrency
@pytest.mark.asyncio
class TestSeatReservationConcurrency:
    """First writer wins, everyone else gets a conflict"""

    async def _make_users(self, session_maker, count):
        async with session_maker() as session:
            users = [
                User(email=f"racer{i}@example.com", full_name=f"Racer {i}", role=UserRole.USER)
                for i in range(count)
            ]
            session.add_all(users)
            await session.commit()
            return [user.id for user in users]

    async def test_single_winner_among_concurrent_reservers(self, session_maker, seat_service, test_event):
        user_ids = await self._make_users(session_maker, 8)

        async def try_reserve(user_id):
            async with session_maker() as session:
                return await seat_service.reserve_seat(session, test_event.id, "A1", user_id)

        results = await asyncio.gather(*(try_reserve(u) for u in user_ids), return_exceptions=True)

        winners = [r for r in results if isinstance(r, Seat)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == len(user_ids) - 1

        async with session_maker() as session:
            seat = (await session.execute(
                select(Seat).where(Seat.event_id == test_event.id, Seat.seat_number == "A1")
            )).scalar_one()
        assert seat.status == SeatStatus.RESERVED
        assert seat.holder_id == winners[0].holder_id

    async def test_concurrent_book_and_release_by_holder(self, session_maker, seat_service, test_event, test_user):
        async with session_maker() as session:
            await seat_service.reserve_seat(session, test_event.id, "A2", test_user.id)

        async def book():
            async with session_maker() as session:
                return await seat_service.book_seat(session, test_event.id, "A2", test_user.id)

        async def release():
            async with session_maker() as session:
                return await seat_service.release_seat(session, test_event.id, "A2", test_user.id)

        results = await asyncio.gather(book(), release(), return_exceptions=True)

        successes = [r for r in results if isinstance(r, Seat)]
        assert len(successes) == 1
        assert isinstance(next(r for r in results if not isinstance(r, Seat)), ConflictError)

        async with session_maker() as session:
            seat = (await session.execute(
                select(Seat).where(Seat.event_id == test_event.id, Seat.seat_number == "A2")
            )).scalar_one()
        assert seat.status == successes[0].status

    async def test_different_seats_reserved_in_parallel(self, session_maker, seat_service, test_event):
        user_ids = await self._make_users(session_maker, 3)

        async def reserve(seat_number, user_id):
            async with session_maker() as session:
                return await seat_service.reserve_seat(session, test_event.id, seat_number, user_id)

        seats = await asyncio.gather(*(
            reserve(number, user_id) for number, user_id in zip(["A1", "A2", "B1"], user_ids)
        ))

        assert {seat.holder_id for seat in seats} == set(user_ids)
        assert all(seat.status == SeatStatus.RESERVED for seat in seats)
