"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from places_api.models.base import Base
from places_api.models.place_snapshot import PlaceSnapshot
from places_api.models.upstream_cache import UpstreamCacheEntry

__all__ = [
    "Base",
    "PlaceSnapshot",
    "UpstreamCacheEntry",
]
