"""
Geocoding client (OpenStreetMap Nominatim).

Two lookups back the care search:
- `geocode`: free text (address, ZIP, place name) -> best single match
- `reverse_geocode`: coordinate -> human-readable label, best effort

Forward geocoding failures propagate so the caller can report a failed search.
Reverse geocoding never fails: it only supplies a label for the origin, so any
problem degrades to the configured fallback label.
"""

from __future__ import annotations

import logging
from typing import Any

from woundwise.config.settings import Settings
from woundwise.core.geo import GeoPoint as CoreGeoPoint
from woundwise.core.http import get_json
from woundwise.domain.models import GeocodeMatch, GeoPoint

logger = logging.getLogger(__name__)


class NominatimClient:
    """Forward and reverse geocoding against a Nominatim instance."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        nominatim = self._settings.ingestion.nominatim
        return get_json(
            f"{nominatim.base_url.rstrip('/')}/{path}",
            params=params,
            headers={"User-Agent": nominatim.user_agent},
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

    def geocode(self, query: str) -> GeocodeMatch | None:
        """Resolve `query` to its best match, or None when nothing matches.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx status codes.
            RuntimeError: If the response is not the expected list of matches.
        """
        logger.info("Geocoding query=%r", query)
        payload = self._get("search", {"format": "json", "q": query, "limit": 1})
        if not isinstance(payload, list):
            raise RuntimeError("Unexpected Nominatim search response shape; expected a list.")
        if not payload:
            return None

        hit = payload[0]
        try:
            location = GeoPoint(lat=float(hit["lat"]), lon=float(hit["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise RuntimeError("Nominatim search match is missing usable lat/lon.") from exc
        return GeocodeMatch(location=location, display_name=str(hit.get("display_name") or query))

    def reverse_geocode(self, point: CoreGeoPoint) -> str:
        """Return a display label for `point`; falls back on any failure."""
        fallback = self._settings.care.fallback_origin_label
        try:
            payload = self._get("reverse", {"format": "json", "lat": point.lat, "lon": point.lon})
        except Exception as exc:
            logger.warning(
                "Reverse geocoding failed for lat=%.4f lon=%.4f: %s", point.lat, point.lon, exc
            )
            return fallback

        label = payload.get("display_name") if isinstance(payload, dict) else None
        if not isinstance(label, str) or not label.strip():
            logger.warning("Reverse geocoding returned no label for lat=%.4f lon=%.4f", point.lat, point.lon)
            return fallback
        return label
