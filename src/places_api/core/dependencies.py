"""Pipeline wiring and FastAPI dependency injection.

The pipeline (and the revalidation coordinator it owns) is built once per
process by ``init_pipeline`` and handed to request handlers through
``get_pipeline``.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from places_api.core.background import BackgroundTaskRunner
from places_api.core.config import Settings
from places_api.lib.cache import (
    InMemoryRawCacheStore,
    InMemorySnapshotStore,
    RawCacheStore,
    SnapshotStore,
    SqlRawCacheStore,
    SqlSnapshotStore,
)
from places_api.lib.sources import (
    CommunitySource,
    CuratedSource,
    JsonCommunitySource,
    JsonCuratedSource,
    JsonOperatorSource,
    OperatorSource,
    StaticCommunitySource,
    StaticCuratedSource,
    StaticOperatorSource,
)
from places_api.lib.upstream import UpstreamFetcher
from places_api.services.places_service import PipelineConfig, PlacesPipeline
from places_api.services.revalidation import RevalidationCoordinator

_pipeline: PlacesPipeline | None = None


def build_pipeline(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    runner: BackgroundTaskRunner | None = None,
) -> PlacesPipeline:
    """Assemble a pipeline from settings.

    Args:
        settings: Application settings.
        session_factory: When given, both cache tiers are stored in the
            database; otherwise they live in process memory.
        runner: Background runner for stale-path revalidation.

    Returns:
        A ready-to-use PlacesPipeline.
    """
    raw_cache: RawCacheStore
    snapshots: SnapshotStore
    if session_factory is not None:
        raw_cache = SqlRawCacheStore(session_factory)
        snapshots = SqlSnapshotStore(session_factory)
    else:
        raw_cache = InMemoryRawCacheStore()
        snapshots = InMemorySnapshotStore()

    curated: CuratedSource = (
        JsonCuratedSource(settings.curated_file) if settings.curated_file else StaticCuratedSource()
    )
    operator: OperatorSource = (
        JsonOperatorSource(settings.operator_file) if settings.operator_file else StaticOperatorSource()
    )
    community: CommunitySource = (
        JsonCommunitySource(settings.community_file) if settings.community_file else StaticCommunitySource()
    )

    fetcher = UpstreamFetcher(
        settings.upstream_endpoint_list,
        timeout=settings.upstream_timeout,
        user_agent=settings.upstream_user_agent,
        log_detail=settings.upstream_log_detail,
    )
    return PlacesPipeline(
        raw_cache=raw_cache,
        snapshots=snapshots,
        coordinator=RevalidationCoordinator(raw_cache, fetcher),
        curated=curated,
        operator=operator,
        community=community,
        config=PipelineConfig.from_settings(settings),
        runner=runner,
    )


def init_pipeline(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> PlacesPipeline:
    """Build the process-wide pipeline and store it for ``get_pipeline``."""
    global _pipeline  # noqa: PLW0603
    _pipeline = build_pipeline(settings, session_factory=session_factory)
    return _pipeline


def reset_pipeline() -> None:
    """Forget the process-wide pipeline."""
    global _pipeline  # noqa: PLW0603
    _pipeline = None


def get_pipeline() -> PlacesPipeline:
    """Return the process-wide pipeline.

    Raises:
        RuntimeError: If init_pipeline() has not been called.
    """
    if _pipeline is None:
        msg = "Places pipeline not initialized. Call init_pipeline() first."
        raise RuntimeError(msg)
    return _pipeline
