"""Bounding-region parsing, cache-key derivation and point containment."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

TERRITORY_CACHE_KEY: Final = "territory"
DEFAULT_KEY_PRECISION: Final = 2
MAX_KEY_PRECISION: Final = 6


class InvalidRegionError(ValueError):
    """Raised when a region query is malformed or its bounds are inverted."""


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box in WGS84 degrees."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def __post_init__(self) -> None:
        for name in ("min_lon", "min_lat", "max_lon", "max_lat"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
                msg = f"{name} must be a finite number, got {value!r}"
                raise InvalidRegionError(msg)
        if self.min_lon >= self.max_lon or self.min_lat >= self.max_lat:
            msg = "bbox minimum must be strictly less than maximum on both axes"
            raise InvalidRegionError(msg)

    def as_list(self) -> list[float]:
        """Bounds in ``[min_lon, min_lat, max_lon, max_lat]`` order."""
        return [self.min_lon, self.min_lat, self.max_lon, self.max_lat]


@dataclass(frozen=True)
class WholeTerritory:
    """Sentinel region covering the whole supported territory."""


WHOLE_TERRITORY: Final = WholeTerritory()

Region = BoundingBox | WholeTerritory


def parse_region(raw: str | None) -> Region:
    """Parse a ``minLon,minLat,maxLon,maxLat`` query string.

    A missing or blank value selects the whole territory.

    Raises:
        InvalidRegionError: If the value is not exactly four finite numbers
            or the bounds are inverted.
    """
    if raw is None or not raw.strip():
        return WHOLE_TERRITORY

    parts = raw.split(",")
    if len(parts) != 4:
        msg = f"bbox must have exactly four comma-separated values, got {len(parts)}"
        raise InvalidRegionError(msg)

    values: list[float] = []
    for part in parts:
        try:
            value = float(part.strip())
        except ValueError as e:
            msg = f"bbox value {part.strip()!r} is not a number"
            raise InvalidRegionError(msg) from e
        if not math.isfinite(value):
            msg = f"bbox value {part.strip()!r} is not finite"
            raise InvalidRegionError(msg)
        values.append(value)

    min_lon, min_lat, max_lon, max_lat = values
    return BoundingBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)


def bbox_from_list(values: list[float] | None) -> BoundingBox | None:
    """Rebuild a bounding box persisted with :meth:`BoundingBox.as_list`."""
    if not values:
        return None
    min_lon, min_lat, max_lon, max_lat = (float(v) for v in values)
    return BoundingBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)


def clamp_precision(precision: int | None) -> int:
    """Clamp a requested key precision to the supported 0-6 range."""
    if precision is None:
        return DEFAULT_KEY_PRECISION
    return max(0, min(int(precision), MAX_KEY_PRECISION))


def format_rounded(value: float, digits: int) -> str:
    """Format ``value`` with ``digits`` decimals, rounding half away from zero.

    Rounding applies to the shortest decimal representation of the float, so
    ``127.005`` rounds to ``127.01`` rather than following its binary value.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:.{digits}f}"


def region_to_cache_key(region: Region, precision: int | None = DEFAULT_KEY_PRECISION) -> str:
    """Derive the canonical cache key for a region.

    Regions whose bounds round to the same digits share a key.
    """
    if isinstance(region, WholeTerritory):
        return TERRITORY_CACHE_KEY
    digits = clamp_precision(precision)
    return ",".join(format_rounded(v, digits) for v in region.as_list())


def is_inside(lat: float, lon: float, region: Region | None) -> bool:
    """Inclusive containment check; the whole territory contains every point."""
    if region is None or isinstance(region, WholeTerritory):
        return True
    return region.min_lon <= lon <= region.max_lon and region.min_lat <= lat <= region.max_lat
