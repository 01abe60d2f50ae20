"""Validator implementations for project snapshots."""
from __future__ import annotations

from typing import List, Optional

from lumiplan.analysis.voltage_drop import cable_spec
from lumiplan.config import PlannerConfig, load_config
from lumiplan.schema.models import ProjectState
from lumiplan.validate.issues import ERROR, WARNING, Issue


class Validator:
    """Callable validator hook returning a list of issues."""

    def __call__(self, state: ProjectState) -> List[Issue]:  # pragma: no cover - interface
        raise NotImplementedError


class LightAssignmentValidator(Validator):
    """Every light should belong to an existing panel and carry a phase."""

    def __call__(self, state: ProjectState) -> List[Issue]:
        issues: List[Issue] = []
        panel_ids = {panel.id for panel in state.panels}
        for idx, light in enumerate(state.lights):
            if light.panel_id is None:
                issues.append(
                    Issue(
                        severity=WARNING,
                        code="LIGHT_UNASSIGNED",
                        path=f"lights[{idx}].panel_id",
                        message=f"Light {light.id} is not attached to a panel",
                    )
                )
                continue
            if light.panel_id not in panel_ids:
                issues.append(
                    Issue(
                        severity=ERROR,
                        code="LIGHT_UNKNOWN_PANEL",
                        path=f"lights[{idx}].panel_id",
                        message=f"Light {light.id} references unknown panel {light.panel_id}",
                    )
                )
            if light.phase is None:
                issues.append(
                    Issue(
                        severity=WARNING,
                        code="LIGHT_NO_PHASE",
                        path=f"lights[{idx}].phase",
                        message=f"Light {light.id} has no phase; it is not reachable from its panel",
                    )
                )
        return issues


class ManualLinkValidator(Validator):
    """Links must join known lights of the same panel and phase."""

    def __call__(self, state: ProjectState) -> List[Issue]:
        issues: List[Issue] = []
        lights = {light.id: light for light in state.lights}
        for idx, link in enumerate(state.manual_links):
            start = lights.get(link.start_light_id)
            end = lights.get(link.end_light_id)
            if start is None or end is None:
                missing = link.start_light_id if start is None else link.end_light_id
                issues.append(
                    Issue(
                        severity=ERROR,
                        code="LINK_UNKNOWN_LIGHT",
                        path=f"manual_links[{idx}]",
                        message=f"Link {link.id} references unknown light {missing}",
                    )
                )
                continue
            if start.panel_id != end.panel_id or start.phase != end.phase:
                issues.append(
                    Issue(
                        severity=WARNING,
                        code="LINK_MISMATCH",
                        path=f"manual_links[{idx}]",
                        message=(
                            f"Link {link.id} joins panel {start.panel_id}/phase {start.phase} "
                            f"to panel {end.panel_id}/phase {end.phase}; it will be dropped"
                        ),
                    )
                )
        return issues


class PanelCapacityValidator(Validator):
    """Flags panels carrying more lights or watts than the configured limits."""

    def __init__(self, config: Optional[PlannerConfig] = None) -> None:
        self.config = config

    def __call__(self, state: ProjectState) -> List[Issue]:
        cfg = self.config or load_config()
        issues: List[Issue] = []
        for idx, panel in enumerate(state.panels):
            members = state.lights_for_panel(panel.id)
            power = sum(light.power_w for light in members)
            if len(members) > cfg.max_lights_per_panel or power > cfg.max_power_per_panel_w:
                issues.append(
                    Issue(
                        severity=WARNING,
                        code="PANEL_OVER_CAPACITY",
                        path=f"panels[{idx}]",
                        message=(
                            f"Panel {panel.id} feeds {len(members)} lights / {power:.0f} W "
                            f"(limits {cfg.max_lights_per_panel} / {cfg.max_power_per_panel_w:.0f} W)"
                        ),
                    )
                )
        return issues


class CalculationValidator(Validator):
    """Voltage-drop parameters must be usable."""

    def __call__(self, state: ProjectState) -> List[Issue]:
        issues: List[Issue] = []
        params = state.calculation
        if params.voltage_v <= 0:
            issues.append(
                Issue(
                    severity=ERROR,
                    code="CALC_INVALID_VOLTAGE",
                    path="calculation.voltage_v",
                    message=f"Supply voltage must be positive, got {params.voltage_v}",
                )
            )
        if not 0 < params.power_factor <= 1:
            issues.append(
                Issue(
                    severity=ERROR,
                    code="CALC_INVALID_POWER_FACTOR",
                    path="calculation.power_factor",
                    message=f"Power factor must be in (0, 1], got {params.power_factor}",
                )
            )
        if cable_spec(params.cable_type) is None:
            issues.append(
                Issue(
                    severity=ERROR,
                    code="CALC_UNKNOWN_CABLE",
                    path="calculation.cable_type",
                    message=f"Unknown cable type {params.cable_type!r}",
                )
            )
        return issues


VALIDATORS: List[Validator] = [
    LightAssignmentValidator(),
    ManualLinkValidator(),
    PanelCapacityValidator(),
    CalculationValidator(),
]


def validate_project(state: ProjectState, config: Optional[PlannerConfig] = None) -> List[Issue]:
    """Run all validators and return a flat list of issues."""

    validators = VALIDATORS
    if config is not None:
        validators = [
            PanelCapacityValidator(config) if isinstance(v, PanelCapacityValidator) else v for v in VALIDATORS
        ]
    issues: List[Issue] = []
    for validator in validators:
        issues.extend(validator(state))
    return issues


def has_errors(issues: List[Issue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


__all__ = [
    "CalculationValidator",
    "LightAssignmentValidator",
    "ManualLinkValidator",
    "PanelCapacityValidator",
    "VALIDATORS",
    "Validator",
    "has_errors",
    "validate_project",
]
