"""
Device location capability.

The care search never talks to GPS hardware: a caller hands it a provider that
either yields the current coordinate or refuses. API and CLI callers adapt what
the client device reported with `FixedLocationProvider`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from woundwise.core.geo import GeoPoint


class LocationError(Exception):
    """Base class for device-location failures."""


class LocationPermissionDenied(LocationError):
    """The user refused location access."""


class LocationUnavailable(LocationError):
    """Permission was granted but no position could be read."""


class LocationProvider(Protocol):
    def current_position(self) -> GeoPoint: ...


@dataclass(frozen=True)
class FixedLocationProvider:
    """Provider backed by an already-known permission status and reading."""

    point: GeoPoint | None = None
    permission_granted: bool = True

    def current_position(self) -> GeoPoint:
        if not self.permission_granted:
            raise LocationPermissionDenied("Location permission denied.")
        if self.point is None:
            raise LocationUnavailable("No location reading available.")
        return self.point
