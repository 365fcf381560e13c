"""Liveness endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

from places_api import __version__
from places_api.schemas.common import HealthResponse

health_router = APIRouter(prefix="/health", tags=["health"])


@health_router.get("", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report that the process is up."""
    return HealthResponse(ok=True, version=__version__, timestamp=datetime.now(UTC))
