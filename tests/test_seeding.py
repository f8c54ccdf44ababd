"""
Seeding tests
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.seeding import DEMO_EVENT_TITLE, seed_demo_event, seed_demo_users, sync_plans
from app.models.event import Event
from app.models.plan import Plan, PlanType
from app.models.seat import Seat
from app.models.user import User


@pytest.mark.unit
@pytest.mark.asyncio
class TestSeeding:

    async def test_sync_plans_is_idempotent(self, db_session, catalog):
        await sync_plans(db_session, catalog)
        plans = await sync_plans(db_session, catalog)

        assert await db_session.scalar(select(func.count(Plan.id))) == 3
        assert plans[PlanType.VIP_MEMBER].price == Decimal("895.28")
        assert plans[PlanType.DIGITAL_MEMBER].features[0] == "Digital event access"

    async def test_demo_data_seeded_once(self, db_session):
        await seed_demo_users(db_session)
        await seed_demo_users(db_session)
        await seed_demo_event(db_session)
        await seed_demo_event(db_session)

        assert await db_session.scalar(select(func.count(User.id))) == 3
        assert await db_session.scalar(select(func.count(Event.id)).where(Event.title == DEMO_EVENT_TITLE)) == 1
        assert await db_session.scalar(select(func.count(Seat.id))) == 30
