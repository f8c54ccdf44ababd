"""
Plan and demo data seeding
"""
from decimal import Decimal
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.core.plans import PlanCatalog
from app.models.event import Event
from app.models.plan import Plan, PlanType
from app.models.user import User, UserRole
from app.services.event_service import EventService

logger = logging.getLogger(__name__)

DEMO_EVENT_TITLE = "Members' Summer Gala"


async def sync_plans(session: AsyncSession, catalog: PlanCatalog) -> Dict[PlanType, Plan]:
    """
    Insert or update one Plan row per catalogue entry

    Running it again only rewrites rows whose configuration changed.
    """
    result = await session.execute(select(Plan).where(Plan.plan_type.is_not(None)))
    existing = {plan.plan_type: plan for plan in result.scalars().all()}

    plans = {}
    for config in catalog:
        plan = existing.get(config.plan_type)
        if plan is None:
            plan = Plan(plan_type=config.plan_type, is_active=True)
            session.add(plan)
            logger.info(f"Creating plan {config.name}")
        elif plan.price != config.price or plan.stripe_price_id != config.stripe_price_id:
            logger.info(f"Updating plan {config.name}: {plan.price} -> {config.price} {config.currency}")

        plan.name = config.name
        plan.description = config.description
        plan.features = list(config.features)
        plan.price = config.price
        plan.currency = config.currency
        plan.stripe_product_id = config.stripe_product_id
        plan.stripe_price_id = config.stripe_price_id
        plans[config.plan_type] = plan

    await session.commit()
    return plans


async def seed_demo_users(session: AsyncSession) -> List[User]:
    demo = [
        ("admin@memberly.example", "Admin User", UserRole.ADMIN),
        ("organizer@memberly.example", "Event Organizer", UserRole.ORGANIZER),
        ("member@memberly.example", "Demo Member", UserRole.USER),
    ]
    result = await session.execute(select(User.email))
    known = set(result.scalars().all())

    users = [
        User(email=email, full_name=name, role=role, is_active=True)
        for email, name, role in demo
        if email not in known
    ]
    session.add_all(users)
    await session.commit()
    logger.info(f"Created {len(users)} demo users")
    return users


async def seed_demo_event(session: AsyncSession) -> None:
    result = await session.execute(select(Event.id).where(Event.title == DEMO_EVENT_TITLE))
    if result.scalar_one_or_none():
        logger.info("Demo event already present, skipping")
        return

    seats = []
    for row, price in (("A", Decimal("120.00")), ("B", Decimal("95.00")), ("C", Decimal("70.00"))):
        seats.extend((f"{row}{number}", price) for number in range(1, 11))

    await EventService.create_event(
        session,
        title=DEMO_EVENT_TITLE,
        seats=seats,
        description="Annual gala evening for members",
        venue_name="Royal Festival Hall",
        city="London",
        country="GB",
    )
