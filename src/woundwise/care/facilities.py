"""
Nearby-care facility search.

Turns heterogeneous Overpass elements into `FacilityResult`s, measures them
from the origin, and keeps the nearest few:

1) normalize: name fallback, representative point, composite address
2) rank: ascending distance, unknown distances last
3) truncate: at most `max_results`

An empty list means "nothing within the radius". Service failures raise from
the client instead, so callers can tell the two apart.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from woundwise.core.geo import GeoPoint, haversine_m, meters_to_miles
from woundwise.domain.models import FacilityKind, FacilityResult, GeoPoint as DomainGeoPoint

ADDRESS_TAGS = ("addr:housenumber", "addr:street", "addr:city", "addr:state", "addr:postcode")


class FacilitySource(Protocol):
    def fetch_elements(self, origin: GeoPoint, *, radius_m: int | None = None) -> list[dict[str, Any]]: ...


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _element_point(element: dict[str, Any]) -> GeoPoint | None:
    """Own point for nodes, computed centroid for ways/relations."""
    lat = element.get("lat")
    lon = element.get("lon")
    center = element.get("center")
    if lat is None and isinstance(center, dict):
        lat = center.get("lat")
    if lon is None and isinstance(center, dict):
        lon = center.get("lon")
    if not (_is_number(lat) and _is_number(lon)):
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return GeoPoint(lat=float(lat), lon=float(lon))


def _facility_kind(tags: dict[str, Any]) -> FacilityKind:
    return "hospital" if tags.get("amenity") == "hospital" else "clinic"


def _facility_name(tags: dict[str, Any], kind: FacilityKind) -> str:
    for key in ("name", "name:en"):
        value = tags.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return "Hospital" if kind == "hospital" else "Clinic"


def _facility_address(tags: dict[str, Any]) -> str | None:
    parts = [str(tags[key]).strip() for key in ADDRESS_TAGS if tags.get(key)]
    parts = [p for p in parts if p]
    return " ".join(parts) if parts else None


def normalize_element(element: dict[str, Any], origin: GeoPoint) -> FacilityResult | None:
    """Normalize one raw element; returns None when it has no usable point."""
    point = _element_point(element)
    if point is None:
        return None

    tags = element.get("tags")
    if not isinstance(tags, dict):
        tags = {}
    kind = _facility_kind(tags)

    return FacilityResult(
        id=f"{element.get('type')}-{element.get('id')}",
        name=_facility_name(tags, kind),
        kind=kind,
        address=_facility_address(tags),
        location=DomainGeoPoint(lat=point.lat, lon=point.lon),
        distance_miles=meters_to_miles(haversine_m(origin, point)),
    )


def rank_facilities(results: Iterable[FacilityResult], *, max_results: int = 8) -> list[FacilityResult]:
    """Sort by ascending distance (unknown distances last) and truncate."""

    def sort_key(r: FacilityResult) -> tuple[bool, float]:
        # Unknown distances sort after every known one, however far.
        return (r.distance_miles is None, r.distance_miles or 0.0)

    return sorted(results, key=sort_key)[: max(0, int(max_results))]


def find_nearby_facilities(
    origin: GeoPoint,
    *,
    client: FacilitySource,
    radius_m: int | None = None,
    max_results: int = 8,
) -> list[FacilityResult]:
    """Fetch, normalize and rank care facilities around `origin`."""
    elements = client.fetch_elements(origin, radius_m=radius_m)
    normalized = (normalize_element(el, origin) for el in elements)
    return rank_facilities((r for r in normalized if r is not None), max_results=max_results)
