"""Typer-based CLI for lumiplan operations."""
from __future__ import annotations

import json
import math
from enum import Enum
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from lumiplan.analysis.summary import analyze as analyze_state
from lumiplan.config import ConfigError, PlannerConfig, load_config
from lumiplan.log import configure_logging
from lumiplan.planner import UnknownEntityError, create_plan, move_panel as move_panel_op, replan_from_panels
from lumiplan.schema.models import (
    Coordinate,
    ProjectState,
    ProjectValidationError,
    load_project_file,
    save_project_file,
)
from lumiplan.validate import has_errors, validate_project

app = typer.Typer(help="Public-lighting low-voltage network planner")
console = Console()


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@app.callback()
def _setup(
    log_level: LogLevel = typer.Option(
        LogLevel.WARNING, "--log-level", case_sensitive=False, help="Logging level for the lumiplan logger"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit log records as JSON lines"),
) -> None:
    configure_logging(log_level.value, json_format=json_logs)


def _load_state(path: Path) -> ProjectState:
    try:
        return load_project_file(path)
    except ProjectValidationError as exc:
        typer.echo(f"Schema validation failed: {exc}")
        if exc.errors:
            typer.echo(json.dumps(exc.errors, indent=2, default=str))
        raise typer.Exit(code=1)


def _load_config(path: Optional[Path]) -> PlannerConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        typer.echo(f"Invalid configuration: {exc}")
        raise typer.Exit(code=1)


@app.command()
def plan(
    project: Path = typer.Option(..., exists=True, help="Project JSON providing roads and boundary"),
    out: Path = typer.Option(..., help="Planned project output path"),
    panels: Optional[int] = typer.Option(None, min=1, help="Panel count (recommended count when omitted)"),
    config: Optional[Path] = typer.Option(None, exists=True, help="Planner configuration JSON"),
) -> None:
    """Place lights along the project's roads and plan panels and phases."""

    state = _load_state(project)
    cfg = _load_config(config)
    planned = create_plan(state.roads, cfg, panel_count=panels, boundary=state.boundary)
    save_project_file(planned, out)
    typer.echo(f"Planned {len(planned.lights)} lights on {len(planned.panels)} panels -> {out}")


@app.command()
def replan(
    project: Path = typer.Option(..., exists=True, help="Project JSON"),
    out: Optional[Path] = typer.Option(None, help="Output path (defaults to overwriting the project)"),
    config: Optional[Path] = typer.Option(None, exists=True, help="Planner configuration JSON"),
) -> None:
    """Reattach lights to their nearest panel and rebalance phases."""

    state = _load_state(project)
    cfg = _load_config(config)
    target = save_project_file(replan_from_panels(state, cfg), out or project)
    typer.echo(f"Replanned project written to {target}")


@app.command("move-panel")
def move_panel(
    project: Path = typer.Option(..., exists=True, help="Project JSON"),
    panel_id: int = typer.Option(..., "--panel-id", help="Panel to move"),
    lat: float = typer.Option(..., help="New latitude"),
    lng: float = typer.Option(..., help="New longitude"),
    out: Optional[Path] = typer.Option(None, help="Output path (defaults to overwriting the project)"),
    config: Optional[Path] = typer.Option(None, exists=True, help="Planner configuration JSON"),
) -> None:
    """Move a panel and replan the whole project."""

    state = _load_state(project)
    cfg = _load_config(config)
    try:
        moved = move_panel_op(state, panel_id, Coordinate(lat=lat, lng=lng), cfg)
    except UnknownEntityError as exc:
        typer.echo(f"Unknown panel: {exc}")
        raise typer.Exit(code=1)
    target = save_project_file(moved, out or project)
    typer.echo(f"Panel {panel_id} moved; project written to {target}")


@app.command()
def validate(
    project: Path = typer.Option(..., exists=True, help="Project JSON"),
    report: Optional[Path] = typer.Option(None, help="Validation report output path"),
    config: Optional[Path] = typer.Option(None, exists=True, help="Planner configuration JSON"),
) -> None:
    """Validate a project JSON file."""

    state = _load_state(project)
    cfg = _load_config(config)
    found = validate_project(state, cfg)
    issues = [issue.to_dict() for issue in found]
    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(json.dumps(issues, indent=2), encoding="utf-8")
    else:
        typer.echo(json.dumps(issues, indent=2))

    raise typer.Exit(code=1 if has_errors(found) else 0)


def _table(title: str, df: pd.DataFrame) -> Table:
    table = Table(title=title)
    for column in df.columns:
        table.add_column(str(column), justify="right")
    for record in df.to_dict("records"):
        cells = []
        for value in record.values():
            if isinstance(value, float) and math.isnan(value):
                cells.append("-")
            else:
                cells.append(str(value))
        table.add_row(*cells)
    return table


@app.command()
def analyze(
    project: Path = typer.Option(..., exists=True, help="Project JSON"),
    out: Optional[Path] = typer.Option(None, help="Directory for panel_summary.csv and voltage_drop.csv"),
) -> None:
    """Print per-panel load and voltage-drop tables."""

    state = _load_state(project)
    results = analyze_state(state, write_csv=out is not None, out_dir=out)
    console.print(_table("Panels", results["panel_summary"]))
    console.print(_table(f"Voltage drop ({state.calculation.cable_type})", results["voltage_drop"]))
    if out is not None:
        typer.echo(f"Analysis tables written to {out}")


def main() -> None:  # pragma: no cover - entry point
    app()


if __name__ == "__main__":  # pragma: no cover - module execution
    main()
