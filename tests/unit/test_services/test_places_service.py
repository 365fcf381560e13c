"""Unit tests for the places pipeline: cache tiers, revalidation paths and merge meta."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from places_api.core.background import InProcessTaskRunner
from places_api.lib.aggregator import SourceKind
from places_api.lib.cache import (
    CacheEntry,
    InMemoryRawCacheStore,
    InMemorySnapshotStore,
    Snapshot,
    SqlRawCacheStore,
    SqlSnapshotStore,
    TtlPolicy,
)
from places_api.lib.region import InvalidRegionError
from places_api.lib.sources import (
    CommunityRecord,
    CuratedRecord,
    OperatorRecord,
    StaticCommunitySource,
    StaticCuratedSource,
    StaticOperatorSource,
)
from places_api.lib.upstream import UpstreamUnavailableError
from places_api.services.places_service import MergeMeta, MergeResult, PipelineConfig, PlacesPipeline
from places_api.services.revalidation import RevalidationCoordinator

BBOX = "127.0,37.0,127.1,37.1"
KEY = "127.00,37.00,127.10,37.10"
BBOX_POLICY = TtlPolicy(ttl=timedelta(minutes=5), stale_ttl=timedelta(hours=24))


class TestColdMiss:
    """First request for a region: fetch, merge, snapshot."""

    @pytest.mark.asyncio
    async def test_merges_upstream_with_curated_inside_region(
        self, make_pipeline, fetcher: AsyncMock, make_upstream
    ) -> None:
        fetcher.fetch.return_value = [
            make_upstream(1, 37.02, 127.02, "Tree A"),
            make_upstream(2, 37.03, 127.03, "Tree B"),
        ]
        pipeline = make_pipeline(
            curated=[
                CuratedRecord(id="in", name="Inside", lat=37.05, lon=127.05),
                CuratedRecord(id="out", name="Outside", lat=38.5, lon=127.05),
            ]
        )

        result = await pipeline.get_places(BBOX)

        assert result.meta.total == 3
        assert result.meta.upstream == 2
        assert result.meta.curated == 1
        assert result.meta.cached is False
        assert result.meta.stale is False
        assert result.meta.upstream_error is None
        assert result.meta.snapshot_cached is False
        assert fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_query_targets_region(self, make_pipeline, fetcher: AsyncMock) -> None:
        await make_pipeline().get_places(BBOX)
        query = fetcher.fetch.call_args.args[0]
        assert "(37.0,127.0,37.1,127.1)" in query

    @pytest.mark.asyncio
    async def test_territory_query_uses_configured_code(self, make_pipeline, fetcher: AsyncMock) -> None:
        pipeline = make_pipeline(config=PipelineConfig(territory_code="JP"))
        await pipeline.get_places(None)
        assert '"ISO3166-1"="JP"' in fetcher.fetch.call_args.args[0]

    @pytest.mark.asyncio
    async def test_writes_raw_entry_and_snapshot(
        self,
        make_pipeline,
        fetcher: AsyncMock,
        raw_cache: InMemoryRawCacheStore,
        snapshots: InMemorySnapshotStore,
        clock,
    ) -> None:
        await make_pipeline().get_places(BBOX)

        entry = await raw_cache.get(KEY)
        assert entry is not None
        assert entry.expires_at == clock.now + timedelta(minutes=5)
        snapshot = await snapshots.get(KEY)
        assert snapshot is not None
        assert snapshot.generated_at == clock.now
        assert snapshot.region is not None
        assert snapshot.meta["upstreamError"] is None

    @pytest.mark.asyncio
    async def test_territory_uses_long_windows(self, make_pipeline, raw_cache: InMemoryRawCacheStore, clock) -> None:
        await make_pipeline().get_places("")

        entry = await raw_cache.get("territory")
        assert entry is not None
        assert entry.expires_at == clock.now + timedelta(minutes=30)
        assert entry.stale_until == clock.now + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_invalid_bbox_raises_before_any_io(self, make_pipeline, fetcher: AsyncMock) -> None:
        with pytest.raises(InvalidRegionError):
            await make_pipeline().get_places("127.1,37.0,127.0,37.1")
        fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_operator_rows_filtered_to_active(self, make_pipeline) -> None:
        pipeline = make_pipeline(
            operator=[
                OperatorRecord(id="1", name="Shown", lat=37.05, lon=127.05),
                OperatorRecord(id="2", name="Hidden", lat=37.06, lon=127.06, status="hidden"),
            ],
            community=[CommunityRecord(id="c", name="Tip", lat=37.07, lon=127.07)],
        )

        result = await pipeline.get_places(BBOX)

        assert result.meta.operator == 1
        assert result.meta.community == 1
        ids = [e.element_id for e in result.elements]
        assert ids == ["operator-1", "community-c"]

    @pytest.mark.asyncio
    async def test_curated_wins_over_upstream_duplicate(self, make_pipeline, fetcher: AsyncMock, make_upstream) -> None:
        fetcher.fetch.return_value = [make_upstream(1, 37.05, 127.05, "Seokchon Lake")]
        pipeline = make_pipeline(curated=[CuratedRecord(id="c1", name="seokchon lake", lat=37.05, lon=127.05)])

        result = await pipeline.get_places(BBOX)

        assert result.meta.total == 1
        assert result.elements[0].source_kind is SourceKind.CURATED


class TestSnapshotTier:
    """Snapshot hits and bypasses."""

    @pytest.mark.asyncio
    async def test_fresh_snapshot_skips_everything(self, make_pipeline, fetcher: AsyncMock, clock) -> None:
        curated = AsyncMock()
        curated.list_curated.return_value = []
        pipeline = make_pipeline()
        await pipeline.get_places(BBOX)
        pipeline._curated = curated

        clock.advance(seconds=30)
        result = await pipeline.get_places(BBOX)

        assert result.meta.snapshot_cached is True
        assert fetcher.fetch.await_count == 1
        curated.list_curated.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_snapshot_is_rebuilt_from_fresh_raw_cache(
        self, make_pipeline, fetcher: AsyncMock, snapshots: InMemorySnapshotStore, clock
    ) -> None:
        pipeline = make_pipeline()
        await pipeline.get_places(BBOX)

        clock.advance(seconds=90)
        result = await pipeline.get_places(BBOX)

        assert result.meta.snapshot_cached is False
        assert result.meta.cached is True
        assert result.meta.stale is False
        assert fetcher.fetch.await_count == 1
        snapshot = await snapshots.get(KEY)
        assert snapshot is not None
        assert snapshot.generated_at == clock.now - timedelta(seconds=90)

    @pytest.mark.asyncio
    async def test_snapshot_with_error_is_not_served(
        self, make_pipeline, fetcher: AsyncMock, snapshots: InMemorySnapshotStore, clock, make_upstream
    ) -> None:
        errored = MergeMeta(upstream_error="upstream returned HTTP 504").to_dict()
        await snapshots.put(Snapshot(key=KEY, elements=[], meta=errored, generated_at=clock.now))
        fetcher.fetch.return_value = [make_upstream(1, 37.05, 127.05, "Tree")]

        result = await make_pipeline().get_places(BBOX)

        assert result.meta.snapshot_cached is False
        assert result.meta.upstream == 1
        assert fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_nearby_bbox_hits_same_snapshot(self, make_pipeline, fetcher: AsyncMock) -> None:
        pipeline = make_pipeline()
        await pipeline.get_places(BBOX)
        result = await pipeline.get_places("127.001,37.002,127.099,37.101")

        assert result.meta.snapshot_cached is True
        assert fetcher.fetch.await_count == 1


class TestStaleWhileRevalidate:
    """Stale raw entries are served immediately and refreshed in the background."""

    @pytest.mark.asyncio
    async def test_stale_entry_served_without_waiting_for_upstream(
        self,
        make_pipeline,
        fetcher: AsyncMock,
        raw_cache: InMemoryRawCacheStore,
        runner: InProcessTaskRunner,
        clock,
        make_upstream,
    ) -> None:
        old = [make_upstream(1, 37.05, 127.05, "Old")]
        await raw_cache.put(CacheEntry.from_fetch(KEY, old, BBOX_POLICY, clock.now - timedelta(minutes=10)))
        gate = asyncio.Event()

        async def _slow_fetch(query: str, endpoints: object = None) -> list:
            await gate.wait()
            return [make_upstream(2, 37.06, 127.06, "New")]

        fetcher.fetch.side_effect = _slow_fetch

        result = await make_pipeline().get_places(BBOX)

        assert result.meta.cached is True
        assert result.meta.stale is True
        assert result.meta.revalidating is True
        assert result.meta.upstream_error is None
        assert [e.source_id for e in result.elements] == ["1"]

        gate.set()
        await runner.drain()

        refreshed = await raw_cache.get(KEY)
        assert refreshed is not None
        assert [e.source_id for e in refreshed.elements] == ["2"]
        assert refreshed.updated_at == clock.now
        assert fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_background_failure_keeps_old_entry(
        self,
        make_pipeline,
        fetcher: AsyncMock,
        raw_cache: InMemoryRawCacheStore,
        runner: InProcessTaskRunner,
        clock,
        make_upstream,
    ) -> None:
        old = CacheEntry.from_fetch(KEY, [make_upstream(1, 37.05, 127.05)], BBOX_POLICY, clock.now - timedelta(hours=1))
        await raw_cache.put(old)
        fetcher.fetch.side_effect = UpstreamUnavailableError("upstream request timed out")

        result = await make_pipeline().get_places(BBOX)
        await runner.drain()

        assert result.meta.stale is True
        assert result.meta.upstream_error is None
        assert await raw_cache.get(KEY) == old

    @pytest.mark.asyncio
    async def test_stale_result_is_snapshotted(
        self,
        make_pipeline,
        raw_cache: InMemoryRawCacheStore,
        snapshots: InMemorySnapshotStore,
        runner: InProcessTaskRunner,
        clock,
        make_upstream,
    ) -> None:
        old = CacheEntry.from_fetch(KEY, [make_upstream(1, 37.05, 127.05)], BBOX_POLICY, clock.now - timedelta(hours=1))
        await raw_cache.put(old)

        await make_pipeline().get_places(BBOX)
        await runner.drain()

        snapshot = await snapshots.get(KEY)
        assert snapshot is not None
        assert snapshot.meta["stale"] is True


class TestUpstreamOutage:
    """Expired or missing entries when every endpoint fails."""

    @pytest.mark.asyncio
    async def test_expired_entry_falls_back_with_error(
        self, make_pipeline, fetcher: AsyncMock, raw_cache: InMemoryRawCacheStore, clock, make_upstream
    ) -> None:
        old = CacheEntry.from_fetch(KEY, [make_upstream(1, 37.05, 127.05)], BBOX_POLICY, clock.now - timedelta(days=2))
        await raw_cache.put(old)
        fetcher.fetch.side_effect = UpstreamUnavailableError("upstream returned HTTP 504", status_code=504)

        result = await make_pipeline().get_places(BBOX)

        assert [e.source_id for e in result.elements] == ["1"]
        assert result.meta.cached is True
        assert result.meta.stale is True
        assert result.meta.revalidating is False
        assert result.meta.upstream_error == "upstream returned HTTP 504"

    @pytest.mark.asyncio
    async def test_miss_returns_internal_records_with_error(
        self, make_pipeline, fetcher: AsyncMock, snapshots: InMemorySnapshotStore
    ) -> None:
        fetcher.fetch.side_effect = UpstreamUnavailableError("connection to upstream failed")
        pipeline = make_pipeline(curated=[CuratedRecord(id="1", name="Lake", lat=37.05, lon=127.05)])

        result = await pipeline.get_places(BBOX)

        assert result.meta.upstream == 0
        assert result.meta.curated == 1
        assert result.meta.cached is False
        assert result.meta.upstream_error == "connection to upstream failed"
        assert await snapshots.get(KEY) is None

    @pytest.mark.asyncio
    async def test_outage_does_not_replace_existing_snapshot(
        self, make_pipeline, fetcher: AsyncMock, snapshots: InMemorySnapshotStore, clock, make_upstream
    ) -> None:
        fetcher.fetch.return_value = [make_upstream(1, 37.05, 127.05)]
        pipeline = make_pipeline()
        await pipeline.get_places(BBOX)
        await pipeline.invalidate()
        good = Snapshot(key=KEY, elements=[], meta=MergeMeta(total=0).to_dict(), generated_at=clock.now)
        await snapshots.put(good)

        clock.advance(minutes=2)
        fetcher.fetch.side_effect = UpstreamUnavailableError("down")
        result = await pipeline.get_places(BBOX)

        assert result.meta.upstream_error == "down"
        assert await snapshots.get(KEY) is good


class TestInvalidate:
    """Tests for PlacesPipeline.invalidate."""

    @pytest.mark.asyncio
    async def test_clears_both_tiers(
        self, make_pipeline, fetcher: AsyncMock, raw_cache: InMemoryRawCacheStore, snapshots: InMemorySnapshotStore
    ) -> None:
        pipeline = make_pipeline()
        await pipeline.get_places(BBOX)

        await pipeline.invalidate()

        assert len(raw_cache) == 0
        assert len(snapshots) == 0
        await pipeline.get_places(BBOX)
        assert fetcher.fetch.await_count == 2


class TestMergeMeta:
    """Tests for MergeMeta serialization."""

    def test_to_dict_uses_wire_names(self) -> None:
        meta = MergeMeta(upstream=1, total=1, upstream_error="x", snapshot_cached=True).to_dict()
        assert meta["upstreamError"] == "x"
        assert meta["snapshotCached"] is True
        assert set(meta) == {
            "upstream",
            "curated",
            "operator",
            "community",
            "total",
            "cached",
            "stale",
            "revalidating",
            "upstreamError",
            "snapshotCached",
        }

    def test_from_dict_inverts_to_dict(self) -> None:
        meta = MergeMeta(curated=2, total=2, cached=True, stale=True, revalidating=True)
        assert MergeMeta.from_dict(meta.to_dict()) == meta


class TestSqlBackedBurst:
    """A burst of cold requests over the SQL stores."""

    @pytest.mark.asyncio
    async def test_concurrent_cold_requests_all_succeed(
        self, session_factory, fetcher: AsyncMock, runner: InProcessTaskRunner, clock, make_upstream
    ) -> None:
        raw_cache = SqlRawCacheStore(session_factory)
        pipeline = PlacesPipeline(
            raw_cache=raw_cache,
            snapshots=SqlSnapshotStore(session_factory),
            coordinator=RevalidationCoordinator(raw_cache, fetcher, clock=clock),
            curated=StaticCuratedSource([CuratedRecord(id="1", name="Lake", lat=37.05, lon=127.05)]),
            operator=StaticOperatorSource(),
            community=StaticCommunitySource(),
            runner=runner,
            clock=clock,
        )
        fetcher.fetch.return_value = [make_upstream(1, 37.02, 127.02, "Tree")]

        results = await asyncio.gather(*(pipeline.get_places(BBOX) for _ in range(5)), return_exceptions=True)

        assert fetcher.fetch.await_count == 1
        assert all(isinstance(r, MergeResult) for r in results), results
        assert all(r.meta.total == 2 for r in results)
