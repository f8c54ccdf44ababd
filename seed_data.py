#!/usr/bin/env python3
"""
Seed the membership plans from configuration, plus optional demo data
"""
import argparse
import asyncio
import logging

from app.config import settings
from app.core.database import async_session, init_db, close_db
from app.core.logging import setup_logging
from app.core.plans import load_plan_catalog
from app.core.seeding import seed_demo_event, seed_demo_users, sync_plans

logger = logging.getLogger("app.seed")


async def main(with_demo: bool):
    """Main seeding function"""
    await init_db()
    catalog = load_plan_catalog(settings)

    try:
        async with async_session() as session:
            plans = await sync_plans(session, catalog)
            for plan in plans.values():
                logger.info(f"Plan ready: {plan.name} {plan.price} {plan.currency}")

            if with_demo:
                await seed_demo_users(session)
                await seed_demo_event(session)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--demo", action="store_true", help="also create demo users and an event")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.demo))
