import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from ingestion.base import RefreshSource
from ingestion.runner import RefreshRunner

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    One interval job per source.

    Jobs never overlap with themselves (max_instances=1), missed runs are
    coalesced into one, and the first run fires immediately. A slow or failing
    source only affects its own job.
    """

    def __init__(self, runner: RefreshRunner, sources: Dict[str, RefreshSource]):
        self.runner = runner
        self.sources = sources
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self):
        """Register every source and start the scheduler (needs a running event loop)"""
        if self.running:
            return

        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        now = datetime.now(timezone.utc)
        for name, source in self.sources.items():
            self.scheduler.add_job(
                self.runner.run_tick,
                trigger=IntervalTrigger(seconds=source.interval_seconds),
                args=[source],
                id=f"refresh:{name}",
                name=f"refresh {name}",
                max_instances=1,
                coalesce=True,
                next_run_time=now,
                replace_existing=True
            )
        self.scheduler.start()
        logger.info(f"Refresh scheduler started with {len(self.sources)} sources")

    def stop(self):
        """Stop scheduling; running ticks are not awaited"""
        if not self.running:
            return
        # AsyncIOScheduler performs the shutdown on its event loop, later
        scheduler, self.scheduler = self.scheduler, None
        scheduler.shutdown(wait=False)
        logger.info("Refresh scheduler stopped")

    def jobs(self) -> List[Job]:
        if self.scheduler is None:
            return []
        return self.scheduler.get_jobs()
