"""Row types returned by the internally-owned record sets."""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


def coerce_coordinate(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True)
class CuratedRecord:
    """Editorially curated place."""

    id: str
    name: str
    lat: float | None
    lon: float | None
    region: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "CuratedRecord":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            lat=coerce_coordinate(row.get("lat")),
            lon=coerce_coordinate(row.get("lon")),
            region=_text(row.get("region")),
        )


@dataclass(frozen=True)
class OperatorRecord:
    """Place entered by an operator through the admin tooling."""

    id: str
    name: str
    lat: float | None
    lon: float | None
    region: str = ""
    memo: str = ""
    status: str = "active"

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "OperatorRecord":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            lat=coerce_coordinate(row.get("lat")),
            lon=coerce_coordinate(row.get("lon")),
            region=_text(row.get("region")),
            memo=_text(row.get("memo")),
            status=_text(row.get("status")).lower() or "active",
        )


@dataclass(frozen=True)
class CommunityRecord:
    """User-submitted place that passed moderation."""

    id: str
    name: str
    lat: float | None
    lon: float | None
    memo: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "CommunityRecord":
        return cls(
            id=_text(row.get("id")),
            name=_text(row.get("name")),
            lat=coerce_coordinate(row.get("lat")),
            lon=coerce_coordinate(row.get("lon")),
            memo=_text(row.get("memo")),
        )
