"""Per-phase voltage drop over each panel's longest run."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional

from lumiplan.schema.models import PHASES, CalculationParams, ProjectState


@dataclass(frozen=True)
class CableSpec:
    label: str
    resistance_ohm_per_km: float
    reactance_ohm_per_km: float


CABLE_SPECS: Dict[str, CableSpec] = {
    "AL_PRE_2x16": CableSpec("PR 2x16 mm² AL", 2.1, 0.08),
    "AL_PRE_2x25": CableSpec("PR 2x25 mm² AL", 1.38, 0.08),
    "AL_PRE_2x35": CableSpec("PR 2x35 mm² AL", 0.986, 0.078),
    "CU_SUB_2x6": CableSpec("Underground copper 2x6 mm²", 3.39, 0.095),
    "CU_SUB_2x10": CableSpec("Underground copper 2x10 mm²", 2.01, 0.09),
    "CU_SUB_2x16": CableSpec("Underground copper 2x16 mm²", 1.26, 0.085),
}


def cable_spec(cable_type: str) -> Optional[CableSpec]:
    """Look up a cable by code, falling back to its display label."""

    spec = CABLE_SPECS.get(cable_type)
    if spec is not None:
        return spec
    return next((s for s in CABLE_SPECS.values() if s.label == cable_type), None)


def params_valid(params: CalculationParams) -> bool:
    return (
        cable_spec(params.cable_type) is not None
        and params.voltage_v > 0
        and 0 < params.power_factor <= 1
    )


def voltage_drop_percent(distance_m: float, power_w: float, params: CalculationParams) -> Optional[float]:
    """Single-phase drop in percent of supply voltage; ``None`` for invalid parameters.

    The factor 2 covers feed and return conductors.
    """

    if not params_valid(params):
        return None
    if distance_m == 0 or power_w == 0:
        return 0.0
    spec = cable_spec(params.cable_type)
    pf = params.power_factor
    r_per_m = spec.resistance_ohm_per_km / 1000.0
    x_per_m = spec.reactance_ohm_per_km / 1000.0
    sin_phi = math.sin(math.acos(pf))
    current = power_w / (params.voltage_v * pf)
    drop_v = 2 * distance_m * current * (r_per_m * pf + x_per_m * sin_phi)
    return drop_v / params.voltage_v * 100


def run_voltage_drop(
    state: ProjectState,
    params: Optional[CalculationParams] = None,
) -> Dict[int, Dict[int, float]]:
    """Return ``{panel_id: {phase: percent}}``; empty when parameters are invalid."""

    params = params or state.calculation
    if not state.panels or not state.lights or not params_valid(params):
        return {}

    results: Dict[int, Dict[int, float]] = {}
    for panel in state.panels:
        panel_lights = state.lights_for_panel(panel.id)
        per_phase: Dict[int, float] = {}
        for phase in PHASES:
            route = panel.routing.get(phase)
            distance = route.distance_m if route else 0.0
            power = sum(light.power_w for light in panel_lights if light.phase == phase)
            per_phase[phase] = voltage_drop_percent(distance, power, params)
        results[panel.id] = per_phase
    return results


__all__ = ["CABLE_SPECS", "CableSpec", "cable_spec", "params_valid", "run_voltage_drop", "voltage_drop_percent"]
