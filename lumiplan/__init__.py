"""Public-lighting network planner public interface with lazy imports."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time helpers for type checkers
    from .analysis.summary import analyze, panel_summary, voltage_drop_table
    from .analysis.voltage_drop import run_voltage_drop
    from .config import PlannerConfig, load_config
    from .planner import PlanSession, create_plan, replan_from_panels, setup_plan
    from .schema.models import ProjectState, load_project, load_project_file
    from .validate import Issue, validate_project

_EXPORTS = {
    "PlanSession": ".planner",
    "create_plan": ".planner",
    "setup_plan": ".planner",
    "replan_from_panels": ".planner",
    "ProjectState": ".schema.models",
    "load_project": ".schema.models",
    "load_project_file": ".schema.models",
    "PlannerConfig": ".config",
    "load_config": ".config",
    "run_voltage_drop": ".analysis.voltage_drop",
    "analyze": ".analysis.summary",
    "panel_summary": ".analysis.summary",
    "voltage_drop_table": ".analysis.summary",
    "Issue": ".validate",
    "validate_project": ".validate",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:  # pragma: no cover - thin lazy loader
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(name)
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)


def __dir__() -> list[str]:  # pragma: no cover - interactive helper
    return sorted(__all__)
