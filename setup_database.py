#!/usr/bin/env python3
"""
Create (or with --recreate, drop and recreate) every table
"""
import argparse
import asyncio
import logging

from app.core.database import Base, engine, init_db, close_db
from app.core.logging import setup_logging

logger = logging.getLogger("app.setup")


async def main(recreate: bool):
    try:
        if recreate:
            import app.models  # noqa: F401

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
            logger.warning("All tables dropped")

        await init_db()
        logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--recreate", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.recreate))
