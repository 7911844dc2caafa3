"""
Cache backends: Redis for deployments, an in-process map for single-process
runs and tests.

Backends store plain strings and raise CacheError on failure. Turning
failures into misses is the job of ReadThroughCache, not of the backend.
"""

import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from core.exceptions import CacheError


class CacheBackend(ABC):
    """Minimal key/value capability set the read-through cache needs"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; return how many"""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        pass

    async def close(self) -> None:
        pass


class RedisCacheBackend(CacheBackend):
    """
    Redis-backed cache.

    Values are written with SETEX so every entry expires even if its explicit
    invalidation is lost. Prefix deletion walks the keyspace with SCAN rather
    than KEYS.
    """

    def __init__(self, client: aioredis.Redis, scan_count: int = 500):
        self.client = client
        self.scan_count = scan_count

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise CacheError("Cache GET failed", context={"key": key}, original_exception=e)

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.setex(key, ttl, value)
        except RedisError as e:
            raise CacheError("Cache SET failed", context={"key": key}, original_exception=e)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise CacheError("Cache DELETE failed", context={"key": key}, original_exception=e)

    async def delete_prefix(self, prefix: str) -> int:
        try:
            keys = [
                key async for key in self.client.scan_iter(match=f"{prefix}*", count=self.scan_count)
            ]
            if not keys:
                return 0
            return int(await self.client.delete(*keys))
        except RedisError as e:
            raise CacheError(
                "Cache prefix invalidation failed",
                context={"prefix": prefix},
                original_exception=e
            )

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            raise CacheError("Cache PING failed", original_exception=e)

    async def close(self) -> None:
        await self.client.aclose()


class MemoryCacheBackend(CacheBackend):
    """
    In-process cache with per-entry expiry.

    All operations run on the event loop thread without awaiting in between,
    so no lock is needed.
    """

    def __init__(self, clock=time.monotonic):
        self._store: Dict[str, Tuple[str, float]] = {}
        self._clock = clock

    def _alive(self, key: str) -> bool:
        entry = self._store.get(key)
        if entry is None:
            return False
        if entry[1] <= self._clock():
            del self._store[key]
            return False
        return True

    async def get(self, key: str) -> Optional[str]:
        if not self._alive(key):
            return None
        return self._store[key][0]

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._store[key] = (value, self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in list(self._store) if k.startswith(prefix) and self._alive(k)]
        for key in keys:
            del self._store[key]
        return len(keys)

    async def ping(self) -> bool:
        return True
