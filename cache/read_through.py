"""
Read-through cache in front of the durable store.

Contract:
- get() never fails: backend errors and undecodable entries are misses
- set() / delete() / invalidate_prefix() are best effort: failures are
  logged and reported through the return value, never raised
- the durable store stays the source of truth; nothing is cached that the
  store did not produce
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic_core import PydanticSerializationError, to_jsonable_python

from cache.backends import CacheBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadThroughCache:
    """
    Best-effort JSON cache over a CacheBackend.

    Attributes:
        backend: Where serialized values live
        default_ttl: TTL in seconds used when a call does not pass one
    """

    def __init__(self, backend: CacheBackend, default_ttl: int = 120):
        self.backend = backend
        self.default_ttl = default_ttl

    async def get(self, key: str) -> Optional[Any]:
        """Cached value for ``key``, or None on miss or any cache failure"""
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache GET error for {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache entry {key} could not be decoded: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store ``value`` as JSON; returns False when it could not be cached"""
        try:
            data = json.dumps(to_jsonable_python(value))
        except (TypeError, ValueError, PydanticSerializationError) as e:
            logger.warning(f"Cache value for {key} could not be encoded: {e}")
            return False

        try:
            await self.backend.set(key, data, ttl or self.default_ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache SET error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self.backend.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache DELETE error for {key}: {e}")
            return False

    async def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key under ``prefix``; 0 when nothing matched or on error"""
        try:
            count = await self.backend.delete_prefix(prefix)
        except Exception as e:
            logger.warning(f"Cache prefix invalidation error for {prefix}: {e}")
            return 0
        if count:
            logger.debug(f"Invalidated {count} cache keys under {prefix}")
        return count

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: Optional[int] = None,
        decode: Optional[Callable[[Any], T]] = None
    ) -> T:
        """
        Cache-aside read.

        Args:
            key: Cache key
            loader: Loads the value from the store on a miss
            ttl: Entry TTL in seconds
            decode: Rebuilds the typed value from its cached JSON form

        Returns:
            The cached or freshly loaded value. ``None`` results are not cached.
        """
        cached = await self.get(key)
        if cached is not None:
            if decode is None:
                return cached
            try:
                return decode(cached)
            except Exception as e:
                logger.warning(f"Cache entry {key} has an unexpected shape: {e}")

        value = await loader()
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def ping(self) -> bool:
        try:
            return await self.backend.ping()
        except Exception as e:
            logger.error(f"Cache PING failed: {e}")
            return False

    async def close(self) -> None:
        try:
            await self.backend.close()
        except Exception as e:
            logger.warning(f"Cache close failed: {e}")
