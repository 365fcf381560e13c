"""Places service: cache-tier decisions for "get merged elements for region".

Request flow:
    1. Serve a fresh, error-free snapshot when one exists.
    2. Otherwise classify the raw cache entry (fresh, stale, expired/miss)
       and obtain raw upstream elements, revalidating as needed.
    3. Merge with curated, operator and community records.
    4. Write the snapshot unless the write would be redundant or would
       replace data with an empty outage result.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from places_api.core.background import BackgroundTaskRunner, task_runner
from places_api.core.config import Settings
from places_api.lib.aggregator import Element, aggregate
from places_api.lib.cache import (
    CacheEntry,
    Freshness,
    RawCacheStore,
    Snapshot,
    SnapshotStore,
    TtlPolicy,
    utcnow,
)
from places_api.lib.region import BoundingBox, Region, parse_region, region_to_cache_key
from places_api.lib.sources import OPERATOR_ACTIVE_STATUS, CommunitySource, CuratedSource, OperatorSource
from places_api.lib.upstream import UpstreamUnavailableError, build_query
from places_api.services.revalidation import RevalidationCoordinator


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for the cache tiers."""

    key_precision: int = 2
    territory_code: str = "KR"
    bbox_policy: TtlPolicy = TtlPolicy(ttl=timedelta(minutes=5), stale_ttl=timedelta(hours=24))
    territory_policy: TtlPolicy = TtlPolicy(ttl=timedelta(minutes=30), stale_ttl=timedelta(days=7))
    snapshot_ttl: timedelta = timedelta(seconds=60)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            key_precision=settings.cache_key_precision,
            territory_code=settings.territory_code,
            bbox_policy=TtlPolicy(
                ttl=timedelta(seconds=settings.bbox_ttl_seconds),
                stale_ttl=timedelta(seconds=settings.bbox_stale_ttl_seconds),
            ),
            territory_policy=TtlPolicy(
                ttl=timedelta(seconds=settings.territory_ttl_seconds),
                stale_ttl=timedelta(seconds=settings.territory_stale_ttl_seconds),
            ),
            snapshot_ttl=timedelta(seconds=settings.snapshot_ttl_seconds),
        )

    def policy_for(self, region: Region) -> TtlPolicy:
        """Bbox queries refresh quickly; whole-territory data is kept much longer."""
        if isinstance(region, BoundingBox):
            return self.bbox_policy
        return self.territory_policy


@dataclass(frozen=True)
class MergeMeta:
    """Provenance counts and cache-state flags for one result."""

    upstream: int = 0
    curated: int = 0
    operator: int = 0
    community: int = 0
    total: int = 0
    cached: bool = False
    stale: bool = False
    revalidating: bool = False
    upstream_error: str | None = None
    snapshot_cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "upstream": self.upstream,
            "curated": self.curated,
            "operator": self.operator,
            "community": self.community,
            "total": self.total,
            "cached": self.cached,
            "stale": self.stale,
            "revalidating": self.revalidating,
            "upstreamError": self.upstream_error,
            "snapshotCached": self.snapshot_cached,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MergeMeta":
        return cls(
            upstream=int(data.get("upstream", 0)),
            curated=int(data.get("curated", 0)),
            operator=int(data.get("operator", 0)),
            community=int(data.get("community", 0)),
            total=int(data.get("total", 0)),
            cached=bool(data.get("cached", False)),
            stale=bool(data.get("stale", False)),
            revalidating=bool(data.get("revalidating", False)),
            upstream_error=data.get("upstreamError"),
            snapshot_cached=bool(data.get("snapshotCached", False)),
        )


@dataclass(frozen=True)
class MergeResult:
    """Deduplicated elements from every source plus their meta summary."""

    elements: tuple[Element, ...]
    meta: MergeMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "meta": self.meta.to_dict(),
        }


@dataclass(frozen=True)
class RawData:
    """Raw upstream elements and how they were obtained."""

    elements: tuple[Element, ...]
    cached: bool
    stale: bool = False
    revalidating: bool = False
    error: str | None = None


class PlacesPipeline:
    """Entry point wiring the codec, both cache tiers, revalidation and merge."""

    def __init__(
        self,
        *,
        raw_cache: RawCacheStore,
        snapshots: SnapshotStore,
        coordinator: RevalidationCoordinator,
        curated: CuratedSource,
        operator: OperatorSource,
        community: CommunitySource,
        config: PipelineConfig | None = None,
        runner: BackgroundTaskRunner | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._raw_cache = raw_cache
        self._snapshots = snapshots
        self._coordinator = coordinator
        self._curated = curated
        self._operator = operator
        self._community = community
        self._config = config or PipelineConfig()
        self._runner = runner or task_runner
        self._clock = clock

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def get_places(self, raw_region: str | None) -> MergeResult:
        """Merged elements for a ``minLon,minLat,maxLon,maxLat`` query (blank = whole territory).

        Raises:
            InvalidRegionError: If ``raw_region`` is malformed.
        """
        return await self.get_places_for_region(parse_region(raw_region))

    async def get_places_for_region(self, region: Region) -> MergeResult:
        key = region_to_cache_key(region, self._config.key_precision)
        now = self._clock()

        existing = await self._snapshots.get(key)
        if existing is not None and self._is_servable(existing, now):
            meta = replace(MergeMeta.from_dict(dict(existing.meta)), snapshot_cached=True)
            logger.debug(f"Snapshot hit for {key}")
            return MergeResult(elements=existing.elements, meta=meta)

        raw = await self._load_raw(key, region, now)

        curated_rows = await self._curated.list_curated(region)
        operator_rows = await self._operator.list_operator(OPERATOR_ACTIVE_STATUS)
        community_rows = await self._community.list_approved_community()
        merged = aggregate(region, raw.elements, curated_rows, operator_rows, community_rows)

        meta = MergeMeta(
            upstream=merged.upstream,
            curated=merged.curated,
            operator=merged.operator,
            community=merged.community,
            total=merged.total,
            cached=raw.cached,
            stale=raw.stale,
            revalidating=raw.revalidating,
            upstream_error=raw.error,
        )
        result = MergeResult(elements=tuple(merged.elements), meta=meta)

        if self._should_write_snapshot(existing, raw):
            await self._snapshots.put(
                Snapshot(
                    key=key,
                    elements=result.elements,
                    meta=meta.to_dict(),
                    generated_at=now,
                    region=region if isinstance(region, BoundingBox) else None,
                )
            )

        logger.info(
            f"Places {key}: total={meta.total} upstream={meta.upstream} curated={meta.curated} "
            f"operator={meta.operator} community={meta.community} cached={meta.cached} "
            f"stale={meta.stale} revalidating={meta.revalidating} error={meta.upstream_error}"
        )
        return result

    async def invalidate(self) -> None:
        """Drop both cache tiers, e.g. after operator records change."""
        await self._raw_cache.clear()
        await self._snapshots.clear()
        logger.info("Cleared raw cache and snapshots")

    def _is_servable(self, snapshot: Snapshot, now: datetime) -> bool:
        return snapshot.is_fresh(now, self._config.snapshot_ttl) and snapshot.meta.get("upstreamError") is None

    @staticmethod
    def _should_write_snapshot(existing: Snapshot | None, raw: RawData) -> bool:
        steady_state = existing is not None and raw.cached and not raw.stale and raw.error is None
        if steady_state:
            return False
        # A total outage must not replace whatever snapshot is there
        return not (raw.error is not None and not raw.elements)

    async def _load_raw(self, key: str, region: Region, now: datetime) -> RawData:
        entry = await self._raw_cache.get(key)
        freshness = entry.freshness(now) if entry is not None else Freshness.EXPIRED
        policy = self._config.policy_for(region)

        if entry is not None and freshness is Freshness.FRESH:
            return RawData(elements=entry.elements, cached=True)

        query = build_query(region, self._config.territory_code)

        if entry is not None and freshness is Freshness.STALE:
            self._runner.submit_task(
                self._coordinator.revalidate(key, query, policy),
                name=f"revalidate:{key}",
            )
            return RawData(elements=entry.elements, cached=True, stale=True, revalidating=True)

        try:
            fresh: CacheEntry = await self._coordinator.revalidate(key, query, policy)
        except UpstreamUnavailableError as e:
            logger.warning(f"Upstream unavailable for {key}: {e.message}")
            if entry is not None:
                return RawData(elements=entry.elements, cached=True, stale=True, error=e.message)
            return RawData(elements=(), cached=False, error=e.message)
        return RawData(elements=fresh.elements, cached=False)
