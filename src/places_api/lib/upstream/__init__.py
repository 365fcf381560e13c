"""Upstream library: Overpass query building and failover fetching.

Public API:
    - build_query: Bbox or whole-territory query for a region
    - build_bbox_query / build_territory_query: The two templates
    - UpstreamFetcher: Ordered-endpoint HTTP client with per-call timeout
    - parse_upstream_elements: Overpass JSON body to upstream elements
    - UpstreamUnavailableError: Every endpoint failed
"""

from places_api.lib.upstream.fetcher import UpstreamFetcher, UpstreamUnavailableError, parse_upstream_elements
from places_api.lib.upstream.query import build_bbox_query, build_query, build_territory_query

__all__ = [
    "UpstreamFetcher",
    "UpstreamUnavailableError",
    "build_bbox_query",
    "build_query",
    "build_territory_query",
    "parse_upstream_elements",
]
