"""Cache library: raw upstream cache and rendered snapshot cache.

Public API:
    - CacheEntry / Snapshot: Immutable cache records
    - Freshness / TtlPolicy: Fresh, stale and expired windows
    - RawCacheStore / SnapshotStore: Store protocols
    - InMemoryRawCacheStore / InMemorySnapshotStore: Process-local stores
    - SqlRawCacheStore / SqlSnapshotStore: SQLAlchemy-backed stores
    - utcnow: Default clock
"""

from places_api.lib.cache.entries import CacheEntry, Freshness, Snapshot, TtlPolicy, utcnow
from places_api.lib.cache.sql import SqlRawCacheStore, SqlSnapshotStore
from places_api.lib.cache.stores import (
    InMemoryRawCacheStore,
    InMemorySnapshotStore,
    RawCacheStore,
    SnapshotStore,
)

__all__ = [
    "CacheEntry",
    "Freshness",
    "InMemoryRawCacheStore",
    "InMemorySnapshotStore",
    "RawCacheStore",
    "Snapshot",
    "SnapshotStore",
    "SqlRawCacheStore",
    "SqlSnapshotStore",
    "TtlPolicy",
    "utcnow",
]
