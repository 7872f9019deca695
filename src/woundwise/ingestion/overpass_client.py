"""
Point-of-interest client (OpenStreetMap Overpass API).

Fetches raw map elements tagged as hospitals or clinics around an origin. The
elements are returned untouched; normalization and ranking live in
`woundwise.care.facilities`.
"""

from __future__ import annotations

import logging
from typing import Any

from woundwise.config.settings import Settings
from woundwise.core.geo import GeoPoint
from woundwise.core.http import post_form

logger = logging.getLogger(__name__)

# (tag key, tag value) pairs that count as a care facility.
FACILITY_TAGS: tuple[tuple[str, str], ...] = (
    ("amenity", "hospital"),
    ("amenity", "clinic"),
    ("healthcare", "clinic"),
)

ELEMENT_TYPES: tuple[str, ...] = ("node", "way", "relation")

# Extra client-side wait on top of the server-side `[timeout:N]` budget.
CLIENT_TIMEOUT_MARGIN_SECONDS = 5


def build_query(origin: GeoPoint, *, radius_m: int, limit: int, timeout_seconds: int = 25) -> str:
    """Render the Overpass QL query for facilities within `radius_m` of `origin`.

    `out center` makes ways/relations carry a computed centroid.
    """
    around = f"around:{int(radius_m)},{origin.lat},{origin.lon}"
    lines = [f"[out:json][timeout:{int(timeout_seconds)}];", "("]
    for key, value in FACILITY_TAGS:
        for element_type in ELEMENT_TYPES:
            lines.append(f"  {element_type}({around})[{key}={value}];")
    lines.append(");")
    lines.append(f"out center tags {int(limit)};")
    return "\n".join(lines) + "\n"


class OverpassClient:
    """Runs facility queries against an Overpass interpreter endpoint."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def fetch_elements(self, origin: GeoPoint, *, radius_m: int | None = None) -> list[dict[str, Any]]:
        """Return raw Overpass elements around `origin`.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx status codes.
            RuntimeError: If the response is not a JSON object.
        """
        overpass = self._settings.ingestion.overpass
        radius = int(radius_m if radius_m is not None else self._settings.care.radius_m)
        query = build_query(
            origin,
            radius_m=radius,
            limit=overpass.raw_limit,
            timeout_seconds=overpass.query_timeout_seconds,
        )

        logger.info("Querying care facilities lat=%.4f lon=%.4f radius_m=%s", origin.lat, origin.lon, radius)
        payload = post_form(
            overpass.url,
            data={"data": query},
            timeout_seconds=max(
                self._settings.app.http_timeout_seconds,
                overpass.query_timeout_seconds + CLIENT_TIMEOUT_MARGIN_SECONDS,
            ),
        )
        if not isinstance(payload, dict):
            raise RuntimeError("Unexpected Overpass response shape; expected an object.")

        elements = payload.get("elements") or []
        if not isinstance(elements, list):
            raise RuntimeError("Unexpected Overpass response shape; 'elements' is not a list.")
        return [el for el in elements if isinstance(el, dict)]
