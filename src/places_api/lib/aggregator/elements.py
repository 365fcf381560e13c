"""Common point-feature shape shared by every source."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

# Tags recomputed from Element fields on serialization
_RESERVED_TAGS = frozenset({"name", "source", "entry:type"})


class SourceKind(StrEnum):
    """Origin of an element."""

    UPSTREAM = "upstream"
    CURATED = "curated"
    OPERATOR = "operator"
    COMMUNITY = "community"


# Order in which sources are laid out before deduplication
SOURCE_PRECEDENCE: tuple[SourceKind, ...] = (
    SourceKind.UPSTREAM,
    SourceKind.CURATED,
    SourceKind.OPERATOR,
    SourceKind.COMMUNITY,
)


@dataclass(frozen=True)
class Element:
    """Immutable point feature identified by ``(source_kind, source_id)``."""

    source_kind: SourceKind
    source_id: str
    lat: float
    lon: float
    name: str = ""
    tags: Mapping[str, Any] = field(default_factory=dict)
    element_type: str = "node"

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_kind", SourceKind(self.source_kind))
        object.__setattr__(self, "source_id", str(self.source_id))
        object.__setattr__(self, "lat", float(self.lat))
        object.__setattr__(self, "lon", float(self.lon))
        object.__setattr__(self, "name", str(self.name or ""))
        extra = {k: v for k, v in dict(self.tags).items() if k not in _RESERVED_TAGS}
        object.__setattr__(self, "tags", MappingProxyType(extra))

    @property
    def identity(self) -> tuple[SourceKind, str]:
        return (self.source_kind, self.source_id)

    @property
    def element_id(self) -> int | str:
        """Id in the produced shape: upstream ids pass through, others are prefixed by kind."""
        if self.source_kind is SourceKind.UPSTREAM:
            return int(self.source_id) if self.source_id.lstrip("-").isdigit() else self.source_id
        return f"{self.source_kind.value}-{self.source_id}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{type, id, lat, lon, tags}``."""
        tags: dict[str, Any] = dict(self.tags)
        tags["name"] = self.name
        tags["source"] = self.source_kind.value
        tags["entry:type"] = self.source_kind.value
        return {
            "type": self.element_type,
            "id": self.element_id,
            "lat": self.lat,
            "lon": self.lon,
            "tags": tags,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Element":
        """Rebuild an element serialized with :meth:`to_dict`."""
        tags = dict(data.get("tags") or {})
        kind = SourceKind(tags.get("entry:type") or tags.get("source") or SourceKind.UPSTREAM)
        raw_id = str(data["id"])
        prefix = f"{kind.value}-"
        if kind is not SourceKind.UPSTREAM and raw_id.startswith(prefix):
            raw_id = raw_id[len(prefix) :]
        return cls(
            source_kind=kind,
            source_id=raw_id,
            lat=data["lat"],
            lon=data["lon"],
            name=tags.get("name", ""),
            tags=tags,
            element_type=data.get("type", "node"),
        )
