"""Store interfaces and in-memory implementations for both cache tiers."""

import threading
from typing import Protocol

from places_api.lib.cache.entries import CacheEntry, Snapshot


class RawCacheStore(Protocol):
    """Raw upstream cache keyed by cache key; writes replace the whole entry."""

    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, entry: CacheEntry) -> None: ...

    async def clear(self) -> None: ...


class SnapshotStore(Protocol):
    """Rendered merge results keyed by cache key; writes supersede earlier ones."""

    async def get(self, key: str) -> Snapshot | None: ...

    async def put(self, snapshot: Snapshot) -> None: ...

    async def clear(self) -> None: ...


class InMemoryRawCacheStore:
    """Process-local raw cache.

    Entries are immutable, so handing the stored object to readers is safe.
    The lock makes the store usable from worker threads as well as tasks.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    async def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class InMemorySnapshotStore:
    """Process-local snapshot cache."""

    def __init__(self) -> None:
        self._snapshots: dict[str, Snapshot] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Snapshot | None:
        with self._lock:
            return self._snapshots.get(key)

    async def put(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.key] = snapshot

    async def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)
