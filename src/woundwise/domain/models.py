"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- API/CLI inputs (`DeviceLocationRequest`, `CareQueryRequest`)
- normalized care-search output (`FacilityResult`, `SearchOutcome`)
- the prototype staging view (`StagingSummary`)

Keeping these models in one place helps:
- validation (reject bad inputs early),
- typed refactors,
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

FacilityKind = Literal["hospital", "clinic"]

OutcomeKind = Literal[
    "results",
    "no_results",
    "not_found",
    "validation_error",
    "permission_denied",
    "error",
]

SearchState = Literal["idle", "searching", "results", "no_results", "error"]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class GeocodeMatch(BaseModel):
    """Best match returned by the text-to-coordinate lookup."""

    location: GeoPoint
    display_name: str


class FacilityResult(BaseModel):
    """One nearby hospital/clinic, normalized from a raw map-data element."""

    id: str
    name: str
    kind: FacilityKind
    address: str | None = None
    location: GeoPoint
    distance_miles: float | None = Field(default=None, ge=0)


class SearchOutcome(BaseModel):
    """Tagged result of one care-search flow.

    `results` is non-empty exactly when `kind == "results"`; every other kind
    carries a user-facing `message`.
    """

    kind: OutcomeKind
    request_id: int
    origin: GeoPoint | None = None
    origin_label: str | None = None
    results: list[FacilityResult] = Field(default_factory=list)
    message: str | None = None
    superseded: bool = False

    @model_validator(mode="after")
    def _validate_shape(self) -> "SearchOutcome":
        if self.kind == "results" and not self.results:
            raise ValueError("a 'results' outcome needs at least one facility")
        if self.kind != "results" and self.results:
            raise ValueError(f"a '{self.kind}' outcome cannot carry facilities")
        if self.kind != "results" and not self.message:
            raise ValueError(f"a '{self.kind}' outcome needs a message")
        return self

    @property
    def state(self) -> SearchState:
        """Session state this outcome settles into."""
        if self.kind in ("results", "no_results"):
            return self.kind
        return "error"


class SessionSnapshot(BaseModel):
    """Current state of a care-search session (for the API)."""

    state: SearchState
    outcome: SearchOutcome | None = None


class DeviceLocationRequest(BaseModel):
    """Device-location flow input: what the client's location capability reported."""

    permission: Literal["granted", "denied"] = "granted"
    origin: GeoPoint | None = None


class CareQueryRequest(BaseModel):
    """Typed-query flow input (address, ZIP or place name)."""

    query: str = ""


class ConfidenceTier(BaseModel):
    label: str
    hint: str


class StageLikelihood(BaseModel):
    stage: str
    probability: float = Field(..., ge=0, le=1)
    percent: int = Field(..., ge=0, le=100)
    likelihood: str


class StageGuidance(BaseModel):
    stage: str
    title: str
    urgency: str
    bullets: list[str]


class StagingSummary(BaseModel):
    """Prototype staging view: fixed probabilities + guidance for the top stage."""

    top_stage: str
    top_percent: int
    confidence: ConfidenceTier
    selected_stage: str
    selected_percent: int
    stages: list[StageLikelihood]
    guidance: StageGuidance
