"""
API routes.

Endpoints:
- GET  `/api/staging`: prototype staging view (fixed probabilities + guidance).
- POST `/api/care/nearby`: care search around the device's reported location.
- POST `/api/care/search`: care search around a typed address/ZIP.
- POST `/api/care/clear`: reset the caller's care-search panel.
- GET  `/api/care/state`: the caller's care-search state and outcome.
- GET  `/api/care/directions`: native maps handoff URL for a facility.

Care endpoints are scoped by the `X-Session-Id` request header: each client id
gets its own `CareSearchSession`, so one caller's searches never supersede or
expose another's. Only the upstream HTTP clients are shared process-wide.

Care-search outcomes (including "not found" and failures) are always returned
as 200 with a tagged `kind`; only malformed requests are rejected.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from fastapi import APIRouter, Header, HTTPException, Query

from woundwise.care.directions import directions_url
from woundwise.care.location import FixedLocationProvider
from woundwise.care.session import CareSearchSession, CareSessionRegistry
from woundwise.config.settings import get_settings
from woundwise.core.geo import GeoPoint as CoreGeoPoint
from woundwise.domain.models import (
    CareQueryRequest,
    DeviceLocationRequest,
    SearchOutcome,
    SessionSnapshot,
    StagingSummary,
)
from woundwise.ingestion.nominatim_client import NominatimClient
from woundwise.ingestion.overpass_client import OverpassClient
from woundwise.staging.prototype import StagingTable, build_staging_summary

router = APIRouter()


@lru_cache
def _staging_table() -> StagingTable:
    return StagingTable.from_settings(get_settings())


@lru_cache
def _clients() -> tuple[NominatimClient, OverpassClient]:
    settings = get_settings()
    return NominatimClient(settings), OverpassClient(settings)


@lru_cache
def _sessions() -> CareSessionRegistry:
    settings = get_settings()

    def new_session() -> CareSearchSession:
        geocoder, facilities = _clients()
        return CareSearchSession(settings, geocoder=geocoder, facilities=facilities)

    return CareSessionRegistry(new_session, max_sessions=settings.care.max_sessions)


def _session(session_id: str) -> CareSearchSession:
    return _sessions().get(session_id)


@router.get("/api/staging", response_model=StagingSummary)
def get_staging(selected: str | None = None) -> StagingSummary:
    """Return the fixed stage likelihoods and guidance for the most likely stage."""
    try:
        return build_staging_summary(_staging_table(), selected=selected)
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e


@router.post("/api/care/nearby", response_model=SearchOutcome)
def post_care_nearby(
    request: DeviceLocationRequest,
    x_session_id: str = Header(..., min_length=1, max_length=128),
) -> SearchOutcome:
    """Search for care near the location the client device reported."""
    point = CoreGeoPoint(lat=request.origin.lat, lon=request.origin.lon) if request.origin else None
    provider = FixedLocationProvider(point=point, permission_granted=request.permission == "granted")
    return _session(x_session_id).search_from_device(provider)


@router.post("/api/care/search", response_model=SearchOutcome)
def post_care_search(
    request: CareQueryRequest,
    x_session_id: str = Header(..., min_length=1, max_length=128),
) -> SearchOutcome:
    """Search for care near a typed address, ZIP code or place name."""
    return _session(x_session_id).search_from_query(request.query)


@router.post("/api/care/clear", response_model=SessionSnapshot)
def post_care_clear(x_session_id: str = Header(..., min_length=1, max_length=128)) -> SessionSnapshot:
    return _session(x_session_id).clear()


@router.get("/api/care/state", response_model=SessionSnapshot)
def get_care_state(x_session_id: str = Header(..., min_length=1, max_length=128)) -> SessionSnapshot:
    return _session(x_session_id).snapshot()


@router.get("/api/care/directions")
def get_care_directions(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    label: str | None = None,
    platform: Literal["ios", "android", "web"] = "android",
) -> dict:
    """Return the maps URL that hands off turn-by-turn directions."""
    return {"url": directions_url(CoreGeoPoint(lat=lat, lon=lon), label=label, platform=platform)}
