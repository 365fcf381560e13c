"""Pydantic v2 schemas for the merged places response."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from places_api.services.places_service import MergeResult


class PlaceElement(BaseModel):
    """One merged point feature."""

    type: str = Field(description="Upstream element type (node, way, relation)")
    id: int | str = Field(description="Upstream id, or '<source>-<id>' for internal records")
    lat: float
    lon: float
    tags: dict[str, Any] = Field(description="name, source and entry:type plus source-specific tags")


class PlacesMeta(BaseModel):
    """Provenance counts and cache-state flags."""

    model_config = ConfigDict(populate_by_name=True)

    upstream: int
    curated: int
    operator: int
    community: int
    total: int
    cached: bool
    stale: bool
    revalidating: bool
    upstream_error: str | None = Field(default=None, alias="upstreamError")
    snapshot_cached: bool = Field(default=False, alias="snapshotCached")


class PlacesResponse(BaseModel):
    """Merged places for a region query."""

    elements: list[PlaceElement]
    meta: PlacesMeta

    @classmethod
    def from_result(cls, result: MergeResult) -> "PlacesResponse":
        return cls.model_validate(result.to_dict())
