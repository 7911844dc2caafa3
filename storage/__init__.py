"""
Durable storage layer.

Modules:
    locks: Named advisory locks, one per logical domain
    store: DurableStore with the append / upsert / latest operations

Usage:
    from storage.store import DurableStore

    store = DurableStore(session_factory)
    record = await store.append_fetch_record(url, payload)
"""

__all__ = [
    "AdvisoryLocks",
    "LockDomain",
    "DurableStore",
]
