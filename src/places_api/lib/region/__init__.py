"""Region library: bbox parsing, cache keys and containment.

Public API:
    - parse_region: Parse a ``minLon,minLat,maxLon,maxLat`` string (blank = whole territory)
    - region_to_cache_key: Rounded, bucketed cache key for a region
    - is_inside: Inclusive point-in-region check
    - BoundingBox / WholeTerritory / WHOLE_TERRITORY: Region variants
    - InvalidRegionError: Malformed region input
"""

from places_api.lib.region.codec import (
    DEFAULT_KEY_PRECISION,
    TERRITORY_CACHE_KEY,
    WHOLE_TERRITORY,
    BoundingBox,
    InvalidRegionError,
    Region,
    WholeTerritory,
    bbox_from_list,
    clamp_precision,
    format_rounded,
    is_inside,
    parse_region,
    region_to_cache_key,
)

__all__ = [
    "DEFAULT_KEY_PRECISION",
    "TERRITORY_CACHE_KEY",
    "WHOLE_TERRITORY",
    "BoundingBox",
    "InvalidRegionError",
    "Region",
    "WholeTerritory",
    "bbox_from_list",
    "clamp_precision",
    "format_rounded",
    "is_inside",
    "parse_region",
    "region_to_cache_key",
]
