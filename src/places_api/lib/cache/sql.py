"""Database-backed cache stores.

Each operation opens its own session from the factory and commits before
returning.  Writes are a single INSERT ... ON CONFLICT DO UPDATE keyed on
``cache_key``, so concurrent writers for one key never collide and the last
write replaces the whole entry.
"""

from datetime import UTC, datetime

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from places_api.lib.aggregator.elements import Element
from places_api.lib.cache.entries import CacheEntry, Snapshot
from places_api.lib.region import bbox_from_list
from places_api.models.place_snapshot import PlaceSnapshot
from places_api.models.upstream_cache import UpstreamCacheEntry


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on round-trip; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


async def _upsert(session: AsyncSession, model: type[Any], values: dict[str, Any]) -> None:
    """Insert ``values`` or overwrite the row with the same ``cache_key``."""
    insert = pg_insert if session.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["cache_key"],
        set_={k: stmt.excluded[k] for k in values if k != "cache_key"},
    )
    await session.execute(stmt)


class SqlRawCacheStore:
    """Raw upstream cache persisted in ``upstream_cache_entries``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> CacheEntry | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UpstreamCacheEntry).where(UpstreamCacheEntry.cache_key == key))
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return CacheEntry(
                key=row.cache_key,
                elements=tuple(Element.from_dict(e) for e in row.elements or []),
                updated_at=_as_utc(row.updated_at),
                expires_at=_as_utc(row.expires_at),
                stale_until=_as_utc(row.stale_until),
            )

    async def put(self, entry: CacheEntry) -> None:
        async with self._session_factory() as session:
            await _upsert(
                session,
                UpstreamCacheEntry,
                {
                    "cache_key": entry.key,
                    "updated_at": entry.updated_at,
                    "expires_at": entry.expires_at,
                    "stale_until": entry.stale_until,
                    "elements": [e.to_dict() for e in entry.elements],
                },
            )
            await session.commit()

    async def clear(self) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(UpstreamCacheEntry))
            await session.commit()


class SqlSnapshotStore:
    """Rendered snapshots persisted in ``place_snapshots``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> Snapshot | None:
        async with self._session_factory() as session:
            result = await session.execute(select(PlaceSnapshot).where(PlaceSnapshot.cache_key == key))
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return Snapshot(
                key=row.cache_key,
                elements=tuple(Element.from_dict(e) for e in row.elements or []),
                meta=dict(row.meta or {}),
                generated_at=_as_utc(row.generated_at),
                region=bbox_from_list(row.bbox),
            )

    async def put(self, snapshot: Snapshot) -> None:
        async with self._session_factory() as session:
            await _upsert(
                session,
                PlaceSnapshot,
                {
                    "cache_key": snapshot.key,
                    "bbox": snapshot.region.as_list() if snapshot.region is not None else None,
                    "generated_at": snapshot.generated_at,
                    "elements": [e.to_dict() for e in snapshot.elements],
                    "meta": dict(snapshot.meta),
                },
            )
            await session.commit()

    async def clear(self) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(PlaceSnapshot))
            await session.commit()
