"""
Prototype staging view.

There is no model: the stage probabilities are a fixed table from settings
(`staging.probabilities`). This module ranks that table, turns the top
probability into confidence language, and looks up canned guidance.

Guidance always follows the MOST LIKELY stage. Selecting another stage only
changes which row is being viewed, never the numbers or the advice.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from woundwise.config.settings import Settings, get_guidance_table
from woundwise.domain.models import ConfidenceTier, StageGuidance, StageLikelihood, StagingSummary

_CONFIDENCE_TIERS: tuple[tuple[float, str, str], ...] = (
    (0.95, "Almost certain", ">=95%"),
    (0.85, "Very likely", "85-94%"),
    (0.70, "Most likely", "70-84%"),
    (0.50, "Possible", "50-69%"),
)

_LIKELIHOOD_LABELS: tuple[tuple[float, str], ...] = (
    (0.85, "Most likely"),
    (0.70, "Likely"),
    (0.40, "Possible"),
    (0.20, "Unlikely"),
)


@dataclass(frozen=True)
class StagingTable:
    """Immutable stage -> probability table, in declared stage order."""

    stages: tuple[str, ...]
    probabilities: Mapping[str, float]

    @classmethod
    def from_settings(cls, settings: Settings) -> "StagingTable":
        staging = settings.staging
        return cls(
            stages=tuple(staging.stages),
            probabilities=MappingProxyType(dict(staging.probabilities)),
        )

    def probability(self, stage: str) -> float:
        if stage not in self.probabilities:
            raise ValueError(f"Unknown stage: '{stage}'")
        return float(self.probabilities[stage])


def percent(p: float) -> int:
    """Whole percent, rounding halves up."""
    return int(math.floor(p * 100 + 0.5))


def confidence_tier(top_p: float) -> ConfidenceTier:
    for threshold, label, hint in _CONFIDENCE_TIERS:
        if top_p >= threshold:
            return ConfidenceTier(label=label, hint=hint)
    return ConfidenceTier(label="Uncertain", hint="<50%")


def likelihood_label(p: float) -> str:
    for threshold, label in _LIKELIHOOD_LABELS:
        if p >= threshold:
            return label
    return "Highly unlikely"


def rank_stages(table: StagingTable) -> list[str]:
    """Stages by descending probability; ties keep declared order."""
    return sorted(table.stages, key=lambda s: -table.probability(s))


def get_guidance(stage: str, guidance: Mapping[str, Any] | None = None) -> StageGuidance:
    """Canned next-step guidance for `stage`, ending with the general disclaimer."""
    guidance = guidance if guidance is not None else get_guidance_table()
    entry = (guidance.get("stages") or {}).get(stage)
    if not isinstance(entry, dict):
        raise ValueError(f"No guidance configured for stage: '{stage}'")

    bullets = [str(b) for b in entry.get("bullets") or []]
    disclaimer = guidance.get("disclaimer")
    if disclaimer:
        bullets.append(str(disclaimer))
    return StageGuidance(
        stage=stage,
        title=str(entry.get("title") or stage),
        urgency=str(entry.get("urgency") or ""),
        bullets=bullets,
    )


def build_staging_summary(table: StagingTable, *, selected: str | None = None) -> StagingSummary:
    """Assemble the staging view; `selected` defaults to the top stage."""
    ranked = rank_stages(table)
    top_stage = ranked[0]
    top_p = table.probability(top_stage)
    selected_stage = selected or top_stage
    selected_p = table.probability(selected_stage)

    rows = [
        StageLikelihood(
            stage=stage,
            probability=table.probability(stage),
            percent=percent(table.probability(stage)),
            likelihood=likelihood_label(table.probability(stage)),
        )
        for stage in ranked
    ]
    return StagingSummary(
        top_stage=top_stage,
        top_percent=percent(top_p),
        confidence=confidence_tier(top_p),
        selected_stage=selected_stage,
        selected_percent=percent(selected_p),
        stages=rows,
        guidance=get_guidance(top_stage),
    )
