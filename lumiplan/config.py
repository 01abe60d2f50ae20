"""Planner tunables and their loading."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lumiplan.schema.models import CalculationParams, PoleType

DEFAULT_CONFIG: Dict[str, Any] = {
    "spacing_m": 30.0,
    "light_power_w": 42.0,
    "default_pole_type": PoleType.CONCRETE_7M.value,
    "stitch_threshold_m": 5.0,
    "min_road_length_m": 5.0,
    "kmeans_max_iterations": 50,
    "max_lights_per_panel": 100,
    "max_power_per_panel_w": 15000.0,
    "calculation": {
        "cable_type": "AL_PRE_2x25",
        "voltage_v": 230.0,
        "power_factor": 0.95,
    },
}


class ConfigError(ValueError):
    """Raised when planner configuration cannot be validated."""


class CalculationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    cable_type: str = "AL_PRE_2x25"
    voltage_v: float = 230.0
    power_factor: float = 0.95


class PlannerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    spacing_m: float = Field(default=30.0, gt=0)
    light_power_w: float = Field(default=42.0, gt=0)
    default_pole_type: PoleType = PoleType.CONCRETE_7M
    stitch_threshold_m: float = Field(default=5.0, ge=0)
    min_road_length_m: float = Field(default=5.0, ge=0)
    kmeans_max_iterations: int = Field(default=50, ge=1)
    max_lights_per_panel: int = Field(default=100, ge=1)
    max_power_per_panel_w: float = Field(default=15000.0, gt=0)
    calculation: CalculationConfig = Field(default_factory=CalculationConfig)

    def calculation_params(self) -> CalculationParams:
        return CalculationParams(**self.calculation.model_dump())


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_json_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid configuration JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must hold a JSON object")
    return data


def load_config(config: Dict[str, Any] | str | Path | None = None) -> PlannerConfig:
    """Merge ``config`` over :data:`DEFAULT_CONFIG`.

    ``config`` may be a mapping, JSON text, or a path to a JSON file.
    """

    overrides: Dict[str, Any] = {}
    if isinstance(config, dict):
        overrides = config
    elif isinstance(config, Path):
        overrides = _read_json_file(config)
    elif isinstance(config, str):
        stripped = config.strip()
        if stripped.startswith("{"):
            try:
                overrides = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Invalid configuration JSON: {exc}") from exc
        else:
            overrides = _read_json_file(Path(config))
    elif config is not None:
        raise TypeError("Unsupported configuration payload")

    try:
        return PlannerConfig.model_validate(_merge(DEFAULT_CONFIG, overrides))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


__all__ = ["DEFAULT_CONFIG", "CalculationConfig", "ConfigError", "PlannerConfig", "load_config"]
