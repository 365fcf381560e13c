"""Overpass QL query templates for the upstream geodata service."""

from places_api.lib.region import BoundingBox, Region

BBOX_SERVER_TIMEOUT = 50
TERRITORY_SERVER_TIMEOUT = 120

# (element kind, tag filters) selecting cherry-blossom points of interest
_SELECTORS: tuple[tuple[str, str], ...] = (
    ("node", '[natural=tree][genus~"prunus|cerasus",i]'),
    ("node", '[natural=tree][species~"prunus|serrulata|yedoensis|jamasakura|subhirtella",i]'),
    ("node", '[natural=tree]["species:ko"~"벚",i]'),
    ("node", '[natural=tree][name~"벚|cherry",i]'),
    ("node", '[tourism=attraction][name~"벚꽃|cherry",i]'),
    ("node", '[leisure=park][name~"벚|cherry",i]'),
    ("way", '[leisure=park][name~"벚|cherry",i]'),
    ("way", '[highway][name~"벚꽃|벚나무|cherry",i]'),
    ("way", '[landuse=orchard][trees~"cherry|벚",i]'),
    ("relation", '[leisure=park][name~"벚|cherry",i]'),
    ("relation", '[route][name~"벚꽃|cherry",i]'),
    ("relation", '[tourism=attraction][name~"벚꽃|cherry",i]'),
)


def build_bbox_query(bbox: BoundingBox, *, timeout: int = BBOX_SERVER_TIMEOUT) -> str:
    """Query scoped to a bounding box (Overpass orders it south,west,north,east)."""
    scope = f"({bbox.min_lat},{bbox.min_lon},{bbox.max_lat},{bbox.max_lon})"
    lines = [f"[out:json][timeout:{timeout}];", "("]
    lines.extend(f"  {kind}{filters}{scope};" for kind, filters in _SELECTORS)
    lines.extend([");", "out center tags;"])
    return "\n".join(lines)


def build_territory_query(territory_code: str = "KR", *, timeout: int = TERRITORY_SERVER_TIMEOUT) -> str:
    """Query scoped to the country area with the given ISO 3166-1 code."""
    lines = [
        f"[out:json][timeout:{timeout}];",
        f'area["ISO3166-1"="{territory_code.upper()}"][admin_level=2]->.territory;',
        "(",
    ]
    lines.extend(f"  {kind}(area.territory){filters};" for kind, filters in _SELECTORS)
    lines.extend([");", "out center tags;"])
    return "\n".join(lines)


def build_query(region: Region, territory_code: str = "KR") -> str:
    """Pick the bbox or whole-territory template for ``region``."""
    if isinstance(region, BoundingBox):
        return build_bbox_query(region)
    return build_territory_query(territory_code)
