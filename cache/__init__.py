"""
Read-through cache for store query results.

Modules:
    backends: CacheBackend interface, Redis and in-memory implementations
    keys: Deterministic cache keys and namespace prefixes
    read_through: ReadThroughCache (miss-on-error get, best-effort writes)
"""

__all__ = [
    "CacheBackend",
    "RedisCacheBackend",
    "MemoryCacheBackend",
    "ReadThroughCache",
]
