"""Aggregator library: common element shape, per-source adapters and merge.

Public API:
    - Element: Immutable point feature shared by every source
    - SourceKind / SOURCE_PRECEDENCE: Source tags and traversal order
    - curated_to_element / operator_to_element / community_to_element: Row adapters
    - dedupe_elements: Coordinate+name deduplication
    - aggregate: Merge upstream elements with the internal record sets
    - AggregateResult: Merged elements with per-source counts
"""

from places_api.lib.aggregator.adapters import community_to_element, curated_to_element, operator_to_element
from places_api.lib.aggregator.elements import SOURCE_PRECEDENCE, Element, SourceKind
from places_api.lib.aggregator.merge import (
    MERGE_RANK,
    AggregateResult,
    aggregate,
    dedup_key,
    dedupe_elements,
    normalize_name,
)

__all__ = [
    "MERGE_RANK",
    "SOURCE_PRECEDENCE",
    "AggregateResult",
    "Element",
    "SourceKind",
    "aggregate",
    "community_to_element",
    "curated_to_element",
    "dedup_key",
    "dedupe_elements",
    "normalize_name",
    "operator_to_element",
]
