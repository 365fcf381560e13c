"""Accessor interfaces for the internally-owned record sets.

Persistence of these records lives outside this package; the pipeline only
needs "list rows" accessors.
"""

from typing import Protocol

from places_api.lib.region import Region
from places_api.lib.sources.records import CommunityRecord, CuratedRecord, OperatorRecord

OPERATOR_ACTIVE_STATUS = "active"


class CuratedSource(Protocol):
    """Curated places, optionally narrowed to a region by the backing store."""

    async def list_curated(self, region: Region) -> list[CuratedRecord]: ...


class OperatorSource(Protocol):
    """Operator-entered places filtered by lifecycle status."""

    async def list_operator(self, status: str) -> list[OperatorRecord]: ...


class CommunitySource(Protocol):
    """Moderated community submissions."""

    async def list_approved_community(self) -> list[CommunityRecord]: ...
