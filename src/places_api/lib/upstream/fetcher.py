"""Overpass HTTP client with ordered endpoint failover.

Each endpoint gets one POST with its own timeout.  The first endpoint that
answers with a well-formed JSON body wins; failures move on to the next
endpoint.  Retry and backoff beyond the endpoint list belong to the caller.
"""

import time
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger

from places_api.lib.aggregator.elements import Element, SourceKind
from places_api.lib.sources.records import coerce_coordinate

DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "places-api/1.0"


class UpstreamUnavailableError(Exception):
    """Raised when the upstream geodata service could not be reached.

    Args:
        message: Human-readable error description.
        endpoint: Endpoint that produced the (last) failure, if any.
        status_code: Optional HTTP status code from that endpoint.
        attempts: Number of endpoints tried.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        attempts: int = 0,
    ) -> None:
        self.message = message
        self.endpoint = endpoint
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message)


def parse_upstream_elements(data: Any) -> list[Element]:
    """Parse an Overpass JSON body into upstream elements.

    Coordinates come from ``lat``/``lon`` or, for ways and relations, from
    the computed ``center``.  Features lacking both are dropped.

    Raises:
        ValueError: If the body is not an Overpass result object.
    """
    if not isinstance(data, dict):
        msg = "response body is not a JSON object"
        raise ValueError(msg)
    raw = data.get("elements") or []
    if not isinstance(raw, list):
        msg = "response 'elements' is not a list"
        raise ValueError(msg)

    elements: list[Element] = []
    for item in raw:
        if not isinstance(item, dict) or item.get("id") is None:
            continue
        lat = coerce_coordinate(item.get("lat"))
        lon = coerce_coordinate(item.get("lon"))
        if lat is None or lon is None:
            center = item.get("center")
            if not isinstance(center, dict):
                continue
            lat = coerce_coordinate(center.get("lat"))
            lon = coerce_coordinate(center.get("lon"))
            if lat is None or lon is None:
                continue
        tags = item.get("tags") if isinstance(item.get("tags"), dict) else {}
        elements.append(
            Element(
                source_kind=SourceKind.UPSTREAM,
                source_id=str(item["id"]),
                lat=lat,
                lon=lon,
                name=tags.get("name", ""),
                tags=tags,
                element_type=str(item.get("type") or "node"),
            )
        )
    return elements


class UpstreamFetcher:
    """Fetches raw elements from an ordered list of Overpass endpoints."""

    def __init__(
        self,
        endpoints: Sequence[str],
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        log_detail: bool = True,
    ) -> None:
        self._endpoints = list(endpoints)
        self._timeout = timeout
        self._user_agent = user_agent
        self._log_detail = log_detail

    @property
    def endpoints(self) -> list[str]:
        return list(self._endpoints)

    async def fetch(self, query: str, endpoints: Sequence[str] | None = None) -> list[Element]:
        """Run ``query`` against each endpoint in order until one succeeds.

        Args:
            query: Overpass QL query text.
            endpoints: Overrides the configured endpoint list for this call.

        Returns:
            Parsed upstream elements from the first successful endpoint.

        Raises:
            UpstreamUnavailableError: If every endpoint failed (or none are configured).
        """
        candidates = list(self._endpoints if endpoints is None else endpoints)
        if not candidates:
            msg = "no upstream endpoints configured"
            raise UpstreamUnavailableError(msg)

        last_error: UpstreamUnavailableError | None = None
        for attempt, endpoint in enumerate(candidates, start=1):
            started = time.perf_counter()
            try:
                elements = await self._fetch_endpoint(endpoint, query)
            except UpstreamUnavailableError as e:
                last_error = e
                if self._log_detail:
                    elapsed_ms = (time.perf_counter() - started) * 1000
                    logger.warning(
                        f"Upstream attempt {attempt}/{len(candidates)} failed "
                        f"endpoint={endpoint} elapsed_ms={elapsed_ms:.0f}: {e.message}"
                    )
                continue

            if self._log_detail:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.info(
                    f"Upstream attempt {attempt}/{len(candidates)} ok "
                    f"endpoint={endpoint} elapsed_ms={elapsed_ms:.0f} elements={len(elements)}"
                )
            return elements

        assert last_error is not None
        raise UpstreamUnavailableError(
            last_error.message,
            endpoint=last_error.endpoint,
            status_code=last_error.status_code,
            attempts=len(candidates),
        ) from last_error

    async def _fetch_endpoint(self, endpoint: str, query: str) -> list[Element]:
        headers = {
            "User-Agent": self._user_agent,
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(endpoint, data={"data": query}, headers=headers)
                response.raise_for_status()

            return parse_upstream_elements(response.json())

        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError("upstream request timed out", endpoint=endpoint) from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailableError(
                f"upstream returned HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
            ) from e
        except httpx.ConnectError as e:
            raise UpstreamUnavailableError("connection to upstream failed", endpoint=endpoint) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"upstream transport error: {e}", endpoint=endpoint) from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"malformed upstream response: {e}", endpoint=endpoint) from e
