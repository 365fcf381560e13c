"""Shared test fixtures for settings, the async cache database, a controllable clock and pipelines."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from places_api.core.background import InProcessTaskRunner
from places_api.core.config import Settings
from places_api.lib.aggregator import Element, SourceKind
from places_api.lib.cache import InMemoryRawCacheStore, InMemorySnapshotStore
from places_api.lib.sources import (
    CommunityRecord,
    CuratedRecord,
    OperatorRecord,
    StaticCommunitySource,
    StaticCuratedSource,
    StaticOperatorSource,
)
from places_api.lib.upstream import UpstreamFetcher
from places_api.models.base import Base
from places_api.services.places_service import PipelineConfig, PlacesPipeline
from places_api.services.revalidation import RevalidationCoordinator


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    """Test application settings (no .env, in-memory stores)."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url=None,
        upstream_endpoints="https://primary.test/api/interpreter,https://backup.test/api/interpreter",
        upstream_log_detail=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 4, 1, 9, 0, tzinfo=UTC))


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine with the cache tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
def make_upstream():
    """Factory for upstream elements."""

    def _make(source_id: int, lat: float, lon: float, name: str = "", **tags: str) -> Element:
        return Element(
            source_kind=SourceKind.UPSTREAM,
            source_id=str(source_id),
            lat=lat,
            lon=lon,
            name=name,
            tags={"natural": "tree", **tags},
        )

    return _make


@pytest.fixture
def fetcher() -> AsyncMock:
    """Upstream fetcher double; set ``fetch.return_value`` or ``fetch.side_effect`` per test."""
    mock = AsyncMock(spec=UpstreamFetcher)
    mock.fetch.return_value = []
    return mock


@pytest.fixture
def runner() -> InProcessTaskRunner:
    return InProcessTaskRunner()


@pytest.fixture
def raw_cache() -> InMemoryRawCacheStore:
    return InMemoryRawCacheStore()


@pytest.fixture
def snapshots() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def make_pipeline(
    raw_cache: InMemoryRawCacheStore,
    snapshots: InMemorySnapshotStore,
    fetcher: AsyncMock,
    runner: InProcessTaskRunner,
    clock: FakeClock,
):
    """Factory for a pipeline over in-memory stores, static sources and the mocked fetcher."""

    def _make(
        curated: list[CuratedRecord] | None = None,
        operator: list[OperatorRecord] | None = None,
        community: list[CommunityRecord] | None = None,
        config: PipelineConfig | None = None,
    ) -> PlacesPipeline:
        return PlacesPipeline(
            raw_cache=raw_cache,
            snapshots=snapshots,
            coordinator=RevalidationCoordinator(raw_cache, fetcher, clock=clock),
            curated=StaticCuratedSource(curated or []),
            operator=StaticOperatorSource(operator or []),
            community=StaticCommunitySource(community or []),
            config=config or PipelineConfig(),
            runner=runner,
            clock=clock,
        )

    return _make
