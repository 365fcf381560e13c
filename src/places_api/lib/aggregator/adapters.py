"""One adapter per record kind, converting rows to :class:`Element`.

Each adapter returns None for rows without finite numeric coordinates.
"""

from places_api.lib.aggregator.elements import Element, SourceKind
from places_api.lib.sources.records import CommunityRecord, CuratedRecord, OperatorRecord, coerce_coordinate


def _coordinates(lat: object, lon: object) -> tuple[float, float] | None:
    lat_f = coerce_coordinate(lat)
    lon_f = coerce_coordinate(lon)
    if lat_f is None or lon_f is None:
        return None
    return lat_f, lon_f


def _present(**tags: str | None) -> dict[str, str]:
    return {k: v for k, v in tags.items() if v}


def curated_to_element(record: CuratedRecord) -> Element | None:
    coords = _coordinates(record.lat, record.lon)
    if coords is None:
        return None
    return Element(
        source_kind=SourceKind.CURATED,
        source_id=record.id,
        lat=coords[0],
        lon=coords[1],
        name=record.name,
        tags=_present(region=record.region),
    )


def operator_to_element(record: OperatorRecord) -> Element | None:
    coords = _coordinates(record.lat, record.lon)
    if coords is None:
        return None
    return Element(
        source_kind=SourceKind.OPERATOR,
        source_id=record.id,
        lat=coords[0],
        lon=coords[1],
        name=record.name,
        tags=_present(region=record.region, memo=record.memo),
    )


def community_to_element(record: CommunityRecord) -> Element | None:
    coords = _coordinates(record.lat, record.lon)
    if coords is None:
        return None
    return Element(
        source_kind=SourceKind.COMMUNITY,
        source_id=record.id,
        lat=coords[0],
        lon=coords[1],
        name=record.name,
        tags=_present(memo=record.memo),
    )
