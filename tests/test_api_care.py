from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.testclient import TestClient

from woundwise.api.app import add_cors, app
from woundwise.care.session import CareSearchSession, CareSessionRegistry
from woundwise.config.settings import get_settings
from woundwise.domain.models import GeocodeMatch, GeoPoint

ALICE = {"X-Session-Id": "alice"}
BOB = {"X-Session-Id": "bob"}


class _StubGeocoder:
    def __init__(self):
        self.queries = []

    def geocode(self, query):
        self.queries.append(query)
        if query == "nowhere":
            return None
        return GeocodeMatch(location=GeoPoint(lat=40.0, lon=-75.0), display_name="Philadelphia, PA")

    def reverse_geocode(self, point):
        return "Center City"


class _StubOverpass:
    def fetch_elements(self, origin, *, radius_m=None):
        return [
            {"type": "node", "id": 1, "lat": 40.01, "lon": -75.0, "tags": {"amenity": "hospital"}},
            {
                "type": "way",
                "id": 2,
                "center": {"lat": 40.001, "lon": -75.0},
                "tags": {"amenity": "clinic", "name": "Corner Clinic", "addr:street": "Main St"},
            },
        ]


def _patch_sessions(monkeypatch) -> _StubGeocoder:
    # Keep API tests offline by swapping the cached session registry.
    import woundwise.api.routes as routes

    geocoder = _StubGeocoder()
    registry = CareSessionRegistry(
        lambda: CareSearchSession(get_settings(), geocoder=geocoder, facilities=_StubOverpass())
    )
    monkeypatch.setattr(routes, "_sessions", lambda: registry)
    return geocoder


def test_api_care_search_returns_ranked_results(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        resp = c.post("/api/care/search", json={"query": "19104"}, headers=ALICE)
        state = c.get("/api/care/state", headers=ALICE).json()

    assert resp.status_code == 200
    data = resp.json()
    assert data["kind"] == "results"
    assert data["origin_label"] == "Philadelphia, PA"
    assert [r["id"] for r in data["results"]] == ["way-2", "node-1"]
    assert data["results"][0]["address"] == "Main St"
    assert state["state"] == "results"
    assert state["outcome"]["request_id"] == data["request_id"]


def test_api_care_search_validation_and_not_found_are_outcomes(monkeypatch):
    geocoder = _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        empty = c.post("/api/care/search", json={"query": "   "}, headers=ALICE)
        missing = c.post("/api/care/search", json={"query": "nowhere"}, headers=ALICE)

    assert empty.status_code == 200
    assert empty.json()["kind"] == "validation_error"
    assert missing.status_code == 200
    assert missing.json()["kind"] == "not_found"
    assert geocoder.queries == ["nowhere"]


def test_api_care_nearby_device_flow(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        ok = c.post("/api/care/nearby", json={"origin": {"lat": 40.0, "lon": -75.0}}, headers=ALICE)
        denied = c.post("/api/care/nearby", json={"permission": "denied"}, headers=ALICE)
        unavailable = c.post("/api/care/nearby", json={}, headers=ALICE)

    assert ok.json()["kind"] == "results"
    assert ok.json()["origin_label"] == "Center City"
    assert denied.json()["kind"] == "permission_denied"
    assert unavailable.json()["kind"] == "error"


def test_api_care_nearby_rejects_out_of_range_origin(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        resp = c.post("/api/care/nearby", json={"origin": {"lat": 91, "lon": 0}}, headers=ALICE)

    assert resp.status_code == 422


def test_api_care_requires_session_header(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        search = c.post("/api/care/search", json={"query": "19104"})
        state = c.get("/api/care/state")

    assert search.status_code == 422
    assert state.status_code == 422


def test_api_care_sessions_are_isolated_per_client(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as a, TestClient(app) as b:
        a_outcome = a.post("/api/care/nearby", json={"origin": {"lat": 40.0, "lon": -75.0}}, headers=ALICE).json()
        b_state = b.get("/api/care/state", headers=BOB).json()
        b_outcome = b.post("/api/care/search", json={"query": "19104"}, headers=BOB).json()
        a_state = a.get("/api/care/state", headers=ALICE).json()

    assert b_state == {"state": "idle", "outcome": None}
    assert b_outcome["superseded"] is False
    assert a_state["state"] == "results"
    assert a_state["outcome"]["origin_label"] == "Center City"
    assert a_state["outcome"]["request_id"] == a_outcome["request_id"]


def test_api_care_clear_resets_only_the_callers_state(monkeypatch):
    _patch_sessions(monkeypatch)

    with TestClient(app) as c:
        c.post("/api/care/search", json={"query": "19104"}, headers=ALICE)
        c.post("/api/care/search", json={"query": "19104"}, headers=BOB)
        cleared = c.post("/api/care/clear", headers=ALICE).json()
        alice = c.get("/api/care/state", headers=ALICE).json()
        bob = c.get("/api/care/state", headers=BOB).json()

    assert cleared == {"state": "idle", "outcome": None}
    assert alice["state"] == "idle"
    assert bob["state"] == "results"


def test_api_directions():
    with TestClient(app) as c:
        ios = c.get("/api/care/directions", params={"lat": 40.01, "lon": -75.0, "label": "ER", "platform": "ios"})
        bad = c.get("/api/care/directions", params={"lat": 100, "lon": 0})

    assert ios.json() == {"url": "http://maps.apple.com/?daddr=40.01,-75.0&q=ER"}
    assert bad.status_code == 422


def test_api_staging():
    with TestClient(app) as c:
        resp = c.get("/api/staging", params={"selected": "Stage II"})
        bad = c.get("/api/staging", params={"selected": "Stage V"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["top_stage"] == "Stage IV"
    assert data["selected_percent"] == 6
    assert data["guidance"]["stage"] == "Stage IV"
    assert bad.status_code == 400
    assert bad.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_cors_is_off_unless_origins_are_listed(monkeypatch):
    monkeypatch.delenv("WOUNDWISE_CORS_ORIGINS", raising=False)
    plain = FastAPI()
    assert add_cors(plain) == []
    assert not any(m.cls is CORSMiddleware for m in plain.user_middleware)

    monkeypatch.setenv("WOUNDWISE_CORS_ORIGINS", "http://localhost:8081, ")
    web = FastAPI()
    assert add_cors(web) == ["http://localhost:8081"]
    assert any(m.cls is CORSMiddleware for m in web.user_middleware)
