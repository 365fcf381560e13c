"""UpstreamCacheEntry model: raw upstream elements cached per rounded region key."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from places_api.models.base import Base


class UpstreamCacheEntry(Base):
    """Last successful upstream fetch for a cache key, with its freshness windows."""

    __tablename__ = "upstream_cache_entries"

    cache_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    stale_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    elements: Mapped[list] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
