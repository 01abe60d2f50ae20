"""Domain dataclasses and the versioned project document schema."""
from .models import (
    MANUAL_ROAD_ID,
    MIXED,
    PHASES,
    CalculationParams,
    Coordinate,
    Light,
    ManualLink,
    Panel,
    PhaseRoute,
    PoleType,
    ProjectModel,
    ProjectState,
    ProjectValidationError,
    Road,
    WireSegment,
    dump_project,
    load_project,
    load_project_file,
    save_project_file,
)

__all__ = [
    "MANUAL_ROAD_ID",
    "MIXED",
    "PHASES",
    "CalculationParams",
    "Coordinate",
    "Light",
    "ManualLink",
    "Panel",
    "PhaseRoute",
    "PoleType",
    "ProjectModel",
    "ProjectState",
    "ProjectValidationError",
    "Road",
    "WireSegment",
    "dump_project",
    "load_project",
    "load_project_file",
    "save_project_file",
]
