import httpx
import pytest

from woundwise.config.settings import get_settings
from woundwise.core.geo import GeoPoint
from woundwise.ingestion.nominatim_client import NominatimClient


def test_geocode_requests_single_match_with_user_agent(monkeypatch):
    calls = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):
        calls.append((url, params, headers))
        return [{"lat": "39.9526", "lon": "-75.1652", "display_name": "Philadelphia, PA, USA"}]

    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", fake_get_json)

    settings = get_settings()
    match = NominatimClient(settings).geocode("19104")

    assert match is not None
    assert match.location.lat == pytest.approx(39.9526)
    assert match.location.lon == pytest.approx(-75.1652)
    assert match.display_name == "Philadelphia, PA, USA"

    url, params, headers = calls[0]
    assert url == "https://nominatim.openstreetmap.org/search"
    assert params == {"format": "json", "q": "19104", "limit": 1}
    assert headers["User-Agent"] == settings.ingestion.nominatim.user_agent


def test_geocode_returns_none_on_zero_matches(monkeypatch):
    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", lambda *_a, **_k: [])
    assert NominatimClient(get_settings()).geocode("zzz-nonexistent") is None


def test_geocode_rejects_unexpected_shapes(monkeypatch):
    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", lambda *_a, **_k: {"error": "x"})
    with pytest.raises(RuntimeError):
        NominatimClient(get_settings()).geocode("anything")

    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", lambda *_a, **_k: [{"lat": "n/a"}])
    with pytest.raises(RuntimeError):
        NominatimClient(get_settings()).geocode("anything")


def test_geocode_propagates_http_errors(monkeypatch):
    def boom(url, **_kwargs):
        request = httpx.Request("GET", url)
        raise httpx.HTTPStatusError("503", request=request, response=httpx.Response(503, request=request))

    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", boom)
    with pytest.raises(httpx.HTTPError):
        NominatimClient(get_settings()).geocode("19104")


def test_reverse_geocode_returns_display_name(monkeypatch):
    calls = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):
        calls.append((url, params))
        return {"display_name": "Center City, Philadelphia"}

    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", fake_get_json)
    label = NominatimClient(get_settings()).reverse_geocode(GeoPoint(lat=39.95, lon=-75.16))

    assert label == "Center City, Philadelphia"
    assert calls == [
        ("https://nominatim.openstreetmap.org/reverse", {"format": "json", "lat": 39.95, "lon": -75.16})
    ]


@pytest.mark.parametrize(
    "behaviour",
    ["transport", "missing_label", "not_an_object", "blank_label"],
)
def test_reverse_geocode_falls_back_on_any_failure(monkeypatch, behaviour):
    def fake_get_json(url, **_kwargs):
        if behaviour == "transport":
            raise httpx.ConnectError("offline", request=httpx.Request("GET", url))
        if behaviour == "missing_label":
            return {"error": "Unable to geocode"}
        if behaviour == "not_an_object":
            return ["unexpected"]
        return {"display_name": "   "}

    monkeypatch.setattr("woundwise.ingestion.nominatim_client.get_json", fake_get_json)
    label = NominatimClient(get_settings()).reverse_geocode(GeoPoint(lat=0.0, lon=0.0))
    assert label == "Current location"
