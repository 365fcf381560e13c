"""Multi-source merge with coordinate+name deduplication."""

import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from places_api.lib.aggregator.adapters import community_to_element, curated_to_element, operator_to_element
from places_api.lib.aggregator.elements import SOURCE_PRECEDENCE, Element, SourceKind
from places_api.lib.region import Region, format_rounded, is_inside
from places_api.lib.sources.records import CommunityRecord, CuratedRecord, OperatorRecord

DEDUP_COORD_DIGITS = 4

# Lower wins a duplicate; internal data is not shadowed by upstream copies
MERGE_RANK: dict[SourceKind, int] = {
    SourceKind.CURATED: 0,
    SourceKind.OPERATOR: 1,
    SourceKind.UPSTREAM: 2,
    SourceKind.COMMUNITY: 3,
}

_WHITESPACE = re.compile(r"\s+")

T = TypeVar("T")


def normalize_name(name: str | None) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", str(name or "").strip().lower())


def dedup_key(element: Element) -> str | None:
    """``lat:lon:name`` key with coordinates rounded to four decimals."""
    if not (math.isfinite(element.lat) and math.isfinite(element.lon)):
        return None
    lat = format_rounded(element.lat, DEDUP_COORD_DIGITS)
    lon = format_rounded(element.lon, DEDUP_COORD_DIGITS)
    return f"{lat}:{lon}:{normalize_name(element.name)}"


def dedupe_elements(elements: Iterable[Element]) -> list[Element]:
    """Collapse elements sharing a dedup key.

    Each key keeps the slot where it was first seen.  The element occupying
    that slot is the best-ranked one per ``MERGE_RANK``; ties keep the
    earliest.
    """
    slots: dict[str, int] = {}
    out: list[Element] = []
    for element in elements:
        key = dedup_key(element)
        if key is None:
            continue
        index = slots.get(key)
        if index is None:
            slots[key] = len(out)
            out.append(element)
        elif MERGE_RANK[element.source_kind] < MERGE_RANK[out[index].source_kind]:
            out[index] = element
    return out


@dataclass(frozen=True)
class AggregateResult:
    """Merged elements plus how many each source contributed before dedup."""

    elements: list[Element]
    upstream: int
    curated: int
    operator: int
    community: int

    @property
    def total(self) -> int:
        return len(self.elements)


def _convert(
    rows: Iterable[T],
    adapter: Callable[[T], Element | None],
    region: Region | None,
) -> list[Element]:
    out: list[Element] = []
    for row in rows:
        element = adapter(row)
        if element is not None and is_inside(element.lat, element.lon, region):
            out.append(element)
    return out


def aggregate(
    region: Region | None,
    raw_elements: Sequence[Element],
    curated_rows: Iterable[CuratedRecord],
    operator_rows: Iterable[OperatorRecord],
    community_rows: Iterable[CommunityRecord],
) -> AggregateResult:
    """Merge upstream elements with the three internal record sets.

    Internal rows are filtered to ``region``; upstream elements were already
    scoped by the upstream query and are taken as-is.  Sources are laid out
    in upstream, curated, operator, community order; a duplicate keeps the
    position of its first occurrence and the content of its best-ranked
    source.
    """
    curated = _convert(curated_rows, curated_to_element, region)
    operator = _convert(operator_rows, operator_to_element, region)
    community = _convert(community_rows, community_to_element, region)

    by_kind = {
        SourceKind.UPSTREAM: list(raw_elements),
        SourceKind.CURATED: curated,
        SourceKind.OPERATOR: operator,
        SourceKind.COMMUNITY: community,
    }
    merged = dedupe_elements(e for kind in SOURCE_PRECEDENCE for e in by_kind[kind])
    return AggregateResult(
        elements=merged,
        upstream=len(raw_elements),
        curated=len(curated),
        operator=len(operator),
        community=len(community),
    )
