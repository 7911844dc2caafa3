"""
Script to refresh every configured source once, without the scheduler
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.exceptions import ServiceError
from core.logging import setup_logging
from services.container import ServiceContainer

logger = logging.getLogger(__name__)


async def run_refresh(only=None) -> int:
    """
    Refresh each source once.

    Returns:
        Number of sources that failed
    """
    container = ServiceContainer(settings.model_copy(update={"SCHEDULER_ENABLED": False}))
    failed = 0

    try:
        await container.start()

        names = only or list(container.sources)
        for name in names:
            try:
                logger.info(f"Refreshing source: {name}")
                result = await container.service.refresh(name)
                logger.info(
                    f"Refresh completed for {name}: "
                    f"written={result.records_written}, invalidated={result.keys_invalidated}"
                )
            except ServiceError as e:
                failed += 1
                logger.error(f"Refresh failed for {name}: {e.message}")
                continue

        logger.info("All refreshes completed")
    finally:
        await container.close()

    return failed


if __name__ == "__main__":
    setup_logging()

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("sources", nargs="*", help="Sources to refresh (default: all)")
    args = parser.parse_args()

    sys.exit(1 if asyncio.run(run_refresh(args.sources or None)) else 0)
