"""Single-flight revalidation of raw cache entries.

At most one upstream fetch runs per cache key at any time.  Callers that
arrive while a fetch is in flight await that same task and share its
outcome, success or failure.  This is a coalescing barrier, not a lock:
callers that do not revalidate never wait on it.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime

from loguru import logger

from places_api.lib.cache import CacheEntry, RawCacheStore, TtlPolicy, utcnow
from places_api.lib.upstream import UpstreamFetcher


class RevalidationCoordinator:
    """Owns the cache key -> in-flight task map.

    All map access happens on the event loop thread without an intervening
    await, so check-then-insert is atomic.
    """

    def __init__(
        self,
        store: RawCacheStore,
        fetcher: UpstreamFetcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task[CacheEntry]] = {}

    def in_flight(self, key: str) -> bool:
        """Whether a revalidation for ``key`` is currently running."""
        return key in self._in_flight

    async def revalidate(
        self,
        key: str,
        query: str,
        policy: TtlPolicy,
        endpoints: Sequence[str] | None = None,
    ) -> CacheEntry:
        """Refresh the raw cache entry for ``key``, joining any fetch already running.

        Args:
            key: Cache key being refreshed.
            query: Upstream query for the key's region.
            policy: Fresh and stale windows applied to the new entry.
            endpoints: Optional endpoint override for the fetcher.

        Returns:
            The newly stored cache entry.

        Raises:
            UpstreamUnavailableError: If the shared fetch failed.  Nothing is
                written and the next call starts a new fetch.
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._refresh(key, query, policy, endpoints), name=f"revalidate:{key}")
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._release(key, t))
        else:
            logger.debug(f"Joining in-flight revalidation for {key}")

        # A cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[CacheEntry]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Revalidation for {key} failed: {task.exception()}")

    async def _refresh(
        self,
        key: str,
        query: str,
        policy: TtlPolicy,
        endpoints: Sequence[str] | None,
    ) -> CacheEntry:
        elements = await self._fetcher.fetch(query, endpoints)
        entry = CacheEntry.from_fetch(key, elements, policy, self._clock())
        await self._store.put(entry)
        logger.info(f"Revalidated {key}: {len(entry.elements)} upstream elements")
        return entry
