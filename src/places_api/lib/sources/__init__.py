"""Record sources library: internal record rows and their accessors.

Public API:
    - CuratedRecord / OperatorRecord / CommunityRecord: Row types
    - CuratedSource / OperatorSource / CommunitySource: Accessor protocols
    - StaticCuratedSource / StaticOperatorSource / StaticCommunitySource: In-memory accessors
    - JsonCuratedSource / JsonOperatorSource / JsonCommunitySource: Records from JSON array files
    - coerce_coordinate: Duck-typed coordinate to finite float (or None)
"""

from places_api.lib.sources.base import (
    OPERATOR_ACTIVE_STATUS,
    CommunitySource,
    CuratedSource,
    OperatorSource,
)
from places_api.lib.sources.records import CommunityRecord, CuratedRecord, OperatorRecord, coerce_coordinate
from places_api.lib.sources.static import (
    JsonCommunitySource,
    JsonCuratedSource,
    JsonOperatorSource,
    StaticCommunitySource,
    StaticCuratedSource,
    StaticOperatorSource,
)

__all__ = [
    "OPERATOR_ACTIVE_STATUS",
    "CommunityRecord",
    "CommunitySource",
    "CuratedRecord",
    "CuratedSource",
    "JsonCommunitySource",
    "JsonCuratedSource",
    "JsonOperatorSource",
    "OperatorRecord",
    "OperatorSource",
    "StaticCommunitySource",
    "StaticCuratedSource",
    "StaticOperatorSource",
    "coerce_coordinate",
]
