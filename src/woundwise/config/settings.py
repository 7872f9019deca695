# src/woundwise/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/woundwise/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `WOUNDWISE_NOMINATIM_USER_AGENT`)
- an external YAML file via `WOUNDWISE_CONFIG_PATH`

Design rule:
- Endpoints, radii and the prototype probability table live in YAML, not in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from woundwise.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, model_validator


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `woundwise.config`."""
    text = resources.files("woundwise.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "WoundWise"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"
    http_log_level: str = "WARNING"


class NominatimSettings(BaseModel):
    base_url: str = "https://nominatim.openstreetmap.org"
    # Nominatim usage policy requires an identifying User-Agent.
    user_agent: str = "woundwise-demo/1.0 (school project)"


class OverpassSettings(BaseModel):
    url: str = "https://overpass-api.de/api/interpreter"
    query_timeout_seconds: int = Field(25, ge=1)
    raw_limit: int = Field(25, ge=1)


class IngestionSettings(BaseModel):
    nominatim: NominatimSettings = Field(default_factory=NominatimSettings)
    overpass: OverpassSettings = Field(default_factory=OverpassSettings)


class CareSettings(BaseModel):
    radius_m: int = Field(10_000, ge=1)
    max_results: int = Field(8, ge=1)
    fallback_origin_label: str = "Current location"
    max_sessions: int = Field(256, ge=1)


class StagingSettings(BaseModel):
    stages: list[str] = Field(
        default_factory=lambda: ["Stage I", "Stage II", "Stage III", "Stage IV", "Unstageable", "DTPI"]
    )
    probabilities: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_table(self) -> "StagingSettings":
        if not self.stages:
            raise ValueError("staging.stages must not be empty")
        unknown = sorted(set(self.probabilities) - set(self.stages))
        if unknown:
            raise ValueError(f"staging.probabilities has unknown stages: {unknown}")
        missing = [s for s in self.stages if s not in self.probabilities]
        if missing:
            raise ValueError(f"staging.probabilities is missing stages: {missing}")
        for stage, p in self.probabilities.items():
            if not 0.0 <= p <= 1.0:
                raise ValueError(f"staging.probabilities['{stage}'] must be within 0..1")
        if abs(sum(self.probabilities.values()) - 1.0) > 1e-6:
            raise ValueError("staging.probabilities must sum to 1.0")
        return self


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    care: CareSettings = Field(default_factory=CareSettings)
    staging: StagingSettings


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("WOUNDWISE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    nominatim = data.setdefault("ingestion", {}).setdefault("nominatim", {})
    user_agent = os.getenv("WOUNDWISE_NOMINATIM_USER_AGENT")
    if user_agent:
        nominatim["user_agent"] = user_agent
    nominatim_url = os.getenv("WOUNDWISE_NOMINATIM_BASE_URL")
    if nominatim_url:
        nominatim["base_url"] = nominatim_url

    overpass_url = os.getenv("WOUNDWISE_OVERPASS_URL")
    if overpass_url:
        data.setdefault("ingestion", {}).setdefault("overpass", {})["url"] = overpass_url

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("WOUNDWISE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")


@lru_cache
def get_guidance_table() -> dict[str, Any]:
    """Load the canned per-stage guidance text (cached)."""
    return _read_package_yaml("guidance.yaml")
