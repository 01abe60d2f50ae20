"""Tabular planning summaries and CSV output."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from lumiplan.analysis.voltage_drop import voltage_drop_percent
from lumiplan.schema.models import MIXED, PHASES, CalculationParams, Light, ProjectState, WireSegment

PANEL_COLUMNS = ["panel_id", "lights", "power_w"] + [
    f"phase{p}_{kind}" for p in PHASES for kind in ("lights", "w")
]
VOLTAGE_DROP_COLUMNS = ["panel_id", "phase", "distance_m", "power_w", "drop_pct"]


def _rounded(df: pd.DataFrame, digits: int = 3) -> pd.DataFrame:
    rounded = df.copy()
    for column in rounded.columns:
        series = rounded[column]
        if is_bool_dtype(series) or not is_numeric_dtype(series):
            continue
        rounded[column] = series.round(digits)
    return rounded


def panel_summary(state: ProjectState) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for panel in state.panels:
        members = state.lights_for_panel(panel.id)
        row: Dict[str, object] = {
            "panel_id": panel.id,
            "lights": len(members),
            "power_w": sum(light.power_w for light in members),
        }
        for phase in PHASES:
            on_phase = [light for light in members if light.phase == phase]
            row[f"phase{phase}_lights"] = len(on_phase)
            row[f"phase{phase}_w"] = sum(light.power_w for light in on_phase)
        rows.append(row)
    return _rounded(pd.DataFrame(rows, columns=PANEL_COLUMNS))


def voltage_drop_table(state: ProjectState, params: Optional[CalculationParams] = None) -> pd.DataFrame:
    """One row per panel and phase; ``drop_pct`` is NaN when parameters are invalid."""

    params = params or state.calculation
    rows: List[Dict[str, object]] = []
    for panel in state.panels:
        members = state.lights_for_panel(panel.id)
        for phase in PHASES:
            route = panel.routing.get(phase)
            distance = route.distance_m if route else 0.0
            power = sum(light.power_w for light in members if light.phase == phase)
            drop = voltage_drop_percent(distance, power, params)
            rows.append(
                {
                    "panel_id": panel.id,
                    "phase": phase,
                    "distance_m": distance,
                    "power_w": power,
                    "drop_pct": math.nan if drop is None else drop,
                }
            )
    return _rounded(pd.DataFrame(rows, columns=VOLTAGE_DROP_COLUMNS))


def visible_lights(state: ProjectState) -> List[Light]:
    hidden_panels = set(state.hidden_panels)
    hidden_phases = set(state.hidden_phases)
    return [
        light
        for light in state.lights
        if light.panel_id not in hidden_panels and light.phase not in hidden_phases
    ]


def visible_segments(state: ProjectState) -> List[WireSegment]:
    hidden_panels = set(state.hidden_panels)
    hidden_phases = set(state.hidden_phases)
    return [
        seg
        for seg in state.wire_segments
        if seg.panel_id not in hidden_panels and (seg.phase == MIXED or seg.phase not in hidden_phases)
    ]


def _write_csv(path: Path, df: pd.DataFrame) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)


def analyze(
    state: ProjectState,
    params: Optional[CalculationParams] = None,
    write_csv: bool = False,
    out_dir: str | Path | None = None,
) -> Dict[str, pd.DataFrame]:
    """Build the panel and voltage-drop tables and optionally write them as CSV."""

    results = {
        "panel_summary": panel_summary(state),
        "voltage_drop": voltage_drop_table(state, params),
    }
    if write_csv:
        directory = Path(out_dir or "analysis_outputs")
        _write_csv(directory / "panel_summary.csv", results["panel_summary"])
        _write_csv(directory / "voltage_drop.csv", results["voltage_drop"])
    return results


__all__ = ["analyze", "panel_summary", "visible_lights", "visible_segments", "voltage_drop_table"]
