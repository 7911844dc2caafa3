"""
Application container: builds and owns every long-lived component
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from cache.backends import CacheBackend, MemoryCacheBackend, RedisCacheBackend
from cache.read_through import ReadThroughCache
from core.config import Settings
from core.database import create_db_engine, create_session_factory, init_models
from ingestion.client import UpstreamClient
from ingestion.runner import RefreshRunner
from ingestion.scheduler import RefreshScheduler
from ingestion.sources import build_sources
from services.space_data import SpaceDataService
from storage.store import DurableStore

logger = logging.getLogger(__name__)


def build_cache_backend(settings: Settings) -> CacheBackend:
    if settings.CACHE_BACKEND == "memory":
        return MemoryCacheBackend()
    if settings.CACHE_BACKEND == "redis":
        return RedisCacheBackend.from_url(settings.REDIS_URL)
    raise ValueError(f"Unknown cache backend: {settings.CACHE_BACKEND}")


class ServiceContainer:
    """
    settings -> engine -> store
    settings -> cache backend -> read-through cache
    settings -> upstream client -> sources -> runner -> scheduler
    all of the above -> SpaceDataService
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        cache_backend: Optional[CacheBackend] = None
    ):
        self.settings = settings

        self.engine = create_db_engine(settings)
        self.session_factory = create_session_factory(self.engine)
        self.store = DurableStore(self.session_factory)

        self.cache = ReadThroughCache(
            cache_backend or build_cache_backend(settings),
            default_ttl=settings.CACHE_DEFAULT_TTL
        )

        self.client = UpstreamClient(settings, transport=transport, sleep=sleep)
        self.sources = build_sources(settings, self.client, self.store)
        self.runner = RefreshRunner(self.cache)
        self.scheduler = RefreshScheduler(self.runner, self.sources)

        self.service = SpaceDataService(
            store=self.store,
            cache=self.cache,
            runner=self.runner,
            sources=self.sources,
            settings=settings,
            scheduler=self.scheduler
        )

    async def start(self):
        """Create missing tables, then start background refreshes"""
        await init_models(self.engine)
        if self.settings.SCHEDULER_ENABLED:
            self.scheduler.start()
        else:
            logger.info("Scheduler disabled; sources refresh on demand only")

    async def close(self):
        self.scheduler.stop()
        await self.client.aclose()
        await self.cache.close()
        await self.engine.dispose()
        logger.info("Service container closed")
