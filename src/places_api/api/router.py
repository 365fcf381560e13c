"""Root API router with /api/v1 prefix."""

from fastapi import APIRouter

from places_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from places_api.api.v1.health import health_router
    from places_api.api.v1.places import places_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(health_router)
    root_router.include_router(places_router)

    return root_router
