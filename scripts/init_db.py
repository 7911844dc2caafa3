"""
Create the service tables (idempotent).

Usage:
    python scripts/init_db.py [--database-url URL]
"""

import argparse
import asyncio
import logging
import sys
import os

# Allow imports from core, models, etc. when run from the repo root
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_db_engine, init_models
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def init_database(database_url: str = None):
    target = settings.model_copy(update={"DATABASE_URL": database_url}) if database_url else settings
    engine = create_db_engine(target)

    try:
        await init_models(engine)
        logger.info("iss_fetch_log, osdr_items and space_cache are ready")
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Create the space data tables")
    parser.add_argument("--database-url", help="Override DATABASE_URL from the environment")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(args.database_url))


if __name__ == "__main__":
    main()
