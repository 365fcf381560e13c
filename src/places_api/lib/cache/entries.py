"""Cache entry types and freshness rules for the two cache tiers."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from places_api.lib.aggregator.elements import Element
from places_api.lib.region import BoundingBox


def utcnow() -> datetime:
    return datetime.now(UTC)


class Freshness(StrEnum):
    """Where ``now`` falls relative to an entry's windows."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TtlPolicy:
    """Fresh window and total usable window for a query shape."""

    ttl: timedelta
    stale_ttl: timedelta

    def __post_init__(self) -> None:
        if self.ttl <= timedelta(0):
            msg = "ttl must be positive"
            raise ValueError(msg)
        # The stale window extends, never shrinks, the fresh one
        if self.stale_ttl < self.ttl:
            object.__setattr__(self, "stale_ttl", self.ttl)


@dataclass(frozen=True)
class CacheEntry:
    """Raw upstream elements for one cache key.

    Replaced as a whole on every successful revalidation.
    """

    key: str
    elements: tuple[Element, ...]
    updated_at: datetime
    expires_at: datetime
    stale_until: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        if self.stale_until < self.expires_at:
            msg = f"stale_until ({self.stale_until}) must not precede expires_at ({self.expires_at})"
            raise ValueError(msg)

    @classmethod
    def from_fetch(cls, key: str, elements: list[Element], policy: TtlPolicy, now: datetime) -> "CacheEntry":
        return cls(
            key=key,
            elements=tuple(elements),
            updated_at=now,
            expires_at=now + policy.ttl,
            stale_until=now + policy.stale_ttl,
        )

    def freshness(self, now: datetime) -> Freshness:
        if now < self.expires_at:
            return Freshness.FRESH
        if now < self.stale_until:
            return Freshness.STALE
        return Freshness.EXPIRED


@dataclass(frozen=True)
class Snapshot:
    """Fully merged, ready-to-serve result for one cache key."""

    key: str
    elements: tuple[Element, ...]
    meta: Mapping[str, Any]
    generated_at: datetime
    region: BoundingBox | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now < self.generated_at + ttl
