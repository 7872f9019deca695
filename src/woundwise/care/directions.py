"""
Directions handoff.

Builds the URL that opens the platform's native maps app with turn-by-turn
directions to a facility. Nothing is routed here.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import quote

from woundwise.core.geo import GeoPoint

Platform = Literal["ios", "android", "web"]


def directions_url(point: GeoPoint, label: str | None = None, platform: Platform = "android") -> str:
    """Return a maps URL for driving directions to `point`.

    iOS opens Apple Maps (which shows `label`); everything else uses Google Maps.
    """
    if platform == "ios":
        encoded_label = quote(label or "Care", safe="")
        return f"http://maps.apple.com/?daddr={point.lat},{point.lon}&q={encoded_label}"
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&destination={point.lat},{point.lon}&travelmode=driving"
    )
