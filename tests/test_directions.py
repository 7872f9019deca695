from woundwise.care.directions import directions_url
from woundwise.core.geo import GeoPoint


def test_directions_url_ios_uses_apple_maps_with_encoded_label():
    url = directions_url(GeoPoint(lat=40.01, lon=-75.0), label="St. Mary's Hospital", platform="ios")
    assert url == "http://maps.apple.com/?daddr=40.01,-75.0&q=St.%20Mary%27s%20Hospital"


def test_directions_url_ios_defaults_label():
    url = directions_url(GeoPoint(lat=1.5, lon=2.5), platform="ios")
    assert url.endswith("&q=Care")


def test_directions_url_other_platforms_use_google_maps():
    url = directions_url(GeoPoint(lat=40.01, lon=-75.0), label="ignored")
    assert url == "https://www.google.com/maps/dir/?api=1&destination=40.01,-75.0&travelmode=driving"
    assert directions_url(GeoPoint(lat=40.01, lon=-75.0), platform="web") == url
