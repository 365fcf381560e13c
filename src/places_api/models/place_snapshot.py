"""PlaceSnapshot model: rendered merge result kept briefly to absorb request bursts."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from places_api.models.base import Base

_JSON = JSON().with_variant(JSONB, "postgresql")


class PlaceSnapshot(Base):
    """Merged elements plus meta summary for a cache key."""

    __tablename__ = "place_snapshots"

    cache_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    bbox: Mapped[list | None] = mapped_column(_JSON, nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    elements: Mapped[list] = mapped_column(_JSON, nullable=False, default=list)
    meta: Mapped[dict] = mapped_column(_JSON, nullable=False, default=dict)
