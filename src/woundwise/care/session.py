"""
Care-search orchestration.

`CareSearchSession` is the command handler behind "Use my location" and
"Search this ZIP/address". Each call runs one flow and returns exactly one
`SearchOutcome`; nothing raises past the session.

Flows:
- device location: position -> reverse geocode (label, best effort) -> facility search
- typed query: validate -> geocode -> facility search (geocoder label is the origin label)

Every search takes a new request id. A flow that finishes after a newer search
(or a `clear()`) is returned marked `superseded` and does not touch session
state, so a slow response can never overwrite a newer one. A blank query is
rejected before it becomes a request (`request_id=0`), leaving any in-flight
search and the current outcome alone.

`CareSessionRegistry` keeps one session per client id for the HTTP API.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Protocol

from woundwise.care.facilities import FacilitySource, find_nearby_facilities
from woundwise.care.location import LocationPermissionDenied, LocationProvider
from woundwise.config.settings import Settings
from woundwise.core.geo import GeoPoint as CoreGeoPoint
from woundwise.domain.models import GeocodeMatch, GeoPoint, SearchOutcome, SearchState, SessionSnapshot

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Type a ZIP code or address first (or use your current location)."
NOT_FOUND_MESSAGE = "Couldn't find that location. Try a full address or ZIP + city."
PERMISSION_DENIED_MESSAGE = "Location permission denied. You can still enter a ZIP code/address instead."
LOCATION_UNAVAILABLE_MESSAGE = "Could not access location."
SEARCH_FAILED_MESSAGE = "Search failed. Try again."
CARE_SEARCH_FAILED_MESSAGE = "Care search failed. Try again."


class Geocoder(Protocol):
    def geocode(self, query: str) -> GeocodeMatch | None: ...

    def reverse_geocode(self, point: CoreGeoPoint) -> str: ...


def no_results_message(radius_m: int) -> str:
    return f"No nearby hospitals/clinics found within ~{radius_m / 1000:g}km."


class CareSearchSession:
    """One user's care-search panel: the latest outcome plus its state."""

    def __init__(self, settings: Settings, *, geocoder: Geocoder, facilities: FacilitySource):
        self._settings = settings
        self._geocoder = geocoder
        self._facilities = facilities
        self._lock = threading.Lock()
        self._latest_request_id = 0
        self._state: SearchState = "idle"
        self._outcome: SearchOutcome | None = None

    @property
    def state(self) -> SearchState:
        with self._lock:
            return self._state

    @property
    def outcome(self) -> SearchOutcome | None:
        with self._lock:
            return self._outcome

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(state=self._state, outcome=self._outcome)

    def clear(self) -> SessionSnapshot:
        """Drop results and return to idle; any in-flight search becomes stale."""
        with self._lock:
            self._latest_request_id += 1
            self._state = "idle"
            self._outcome = None
            return SessionSnapshot(state=self._state)

    def _begin(self) -> int:
        with self._lock:
            self._latest_request_id += 1
            self._state = "searching"
            self._outcome = None
            return self._latest_request_id

    def _finish(self, outcome: SearchOutcome) -> SearchOutcome:
        with self._lock:
            if outcome.request_id != self._latest_request_id:
                logger.warning(
                    "Discarding superseded care search request_id=%s (latest=%s)",
                    outcome.request_id,
                    self._latest_request_id,
                )
                return outcome.model_copy(update={"superseded": True})
            self._outcome = outcome
            self._state = outcome.state
            return outcome

    def _search_facilities(
        self,
        request_id: int,
        origin: CoreGeoPoint,
        origin_label: str,
        *,
        failure_message: str,
    ) -> SearchOutcome:
        care = self._settings.care
        base = {
            "request_id": request_id,
            "origin": GeoPoint(lat=origin.lat, lon=origin.lon),
            "origin_label": origin_label,
        }
        try:
            results = find_nearby_facilities(
                origin,
                client=self._facilities,
                radius_m=care.radius_m,
                max_results=care.max_results,
            )
        except Exception as exc:
            logger.warning("Care facility search failed: %s", exc)
            return SearchOutcome(kind="error", message=failure_message, **base)

        if not results:
            return SearchOutcome(kind="no_results", message=no_results_message(care.radius_m), **base)
        return SearchOutcome(kind="results", results=results, **base)

    def search_from_device(self, provider: LocationProvider) -> SearchOutcome:
        """Search around the device's current position."""
        request_id = self._begin()
        try:
            origin = provider.current_position()
            # Out-of-range readings fail validation here, not mid-search.
            GeoPoint(lat=origin.lat, lon=origin.lon)
        except LocationPermissionDenied:
            logger.info("Device location permission denied (request_id=%s)", request_id)
            return self._finish(
                SearchOutcome(kind="permission_denied", request_id=request_id, message=PERMISSION_DENIED_MESSAGE)
            )
        except Exception as exc:
            logger.warning("Could not read device location: %s", exc)
            return self._finish(
                SearchOutcome(kind="error", request_id=request_id, message=LOCATION_UNAVAILABLE_MESSAGE)
            )

        try:
            label = self._geocoder.reverse_geocode(origin)
        except Exception as exc:
            logger.warning("Reverse geocoding failed; using fallback label: %s", exc)
            label = self._settings.care.fallback_origin_label
        return self._finish(
            self._search_facilities(request_id, origin, label, failure_message=CARE_SEARCH_FAILED_MESSAGE)
        )

    def search_from_query(self, query: str | None) -> SearchOutcome:
        """Search around a typed address, ZIP code or place name."""
        text = (query or "").strip()
        if not text:
            return SearchOutcome(kind="validation_error", request_id=0, message=VALIDATION_MESSAGE)

        request_id = self._begin()
        try:
            match = self._geocoder.geocode(text)
        except Exception as exc:
            logger.warning("Geocoding failed for query=%r: %s", text, exc)
            return self._finish(SearchOutcome(kind="error", request_id=request_id, message=SEARCH_FAILED_MESSAGE))

        if match is None:
            return self._finish(SearchOutcome(kind="not_found", request_id=request_id, message=NOT_FOUND_MESSAGE))

        origin = CoreGeoPoint(lat=match.location.lat, lon=match.location.lon)
        return self._finish(
            self._search_facilities(request_id, origin, match.display_name, failure_message=SEARCH_FAILED_MESSAGE)
        )


class CareSessionRegistry:
    """Bounded map of client id -> `CareSearchSession`.

    Sessions are created on first use; the least recently used one is dropped
    once `max_sessions` is exceeded.
    """

    def __init__(self, factory: Callable[[], CareSearchSession], *, max_sessions: int = 256):
        self._factory = factory
        self._max_sessions = max(1, int(max_sessions))
        self._lock = threading.Lock()
        self._sessions: OrderedDict[str, CareSearchSession] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: str) -> CareSearchSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
                return session

            session = self._factory()
            self._sessions[session_id] = session
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted idle care session %s", evicted)
            return session
