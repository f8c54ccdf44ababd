#!/usr/bin/env python3
"""
Expire memberships past their end date

Meant to be run by an external scheduler (cron, Kubernetes CronJob).
"""
import asyncio
import logging

from app.core.database import async_session, close_db
from app.core.logging import setup_logging
from app.services.membership_service import MembershipService

logger = logging.getLogger("app.expire_memberships")


async def main() -> int:
    try:
        async with async_session() as session:
            expired = await MembershipService().update_expired_memberships(session)
    finally:
        await close_db()

    logger.info(f"Membership expiry sweep finished, {expired} expired")
    return expired


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
