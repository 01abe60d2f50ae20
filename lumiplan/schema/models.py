"""Domain types for the lighting planner and the pydantic models of the
versioned project document."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

PHASES: Tuple[int, int, int] = (1, 2, 3)
MIXED = "mixed"
MANUAL_ROAD_ID = "manual"
DOCUMENT_VERSION = 1


class ProjectValidationError(ValueError):
    """Raised when a project document cannot be validated."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PoleType(str, Enum):
    CONCRETE_7M = "concrete_7m"
    CONCRETE_7M_REINFORCED = "concrete_7m_reinforced"
    CONCRETE_9M = "concrete_9m"
    CONCRETE_12M = "concrete_12m"
    METAL_4M = "metal_4m"
    METAL_6M = "metal_6m"
    METAL_9M = "metal_9m"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class Road:
    id: str
    name: str
    path: Tuple[Coordinate, ...]


@dataclass(frozen=True)
class Light:
    id: str
    road_id: str
    position: Coordinate
    power_w: float
    pole_type: PoleType = PoleType.CONCRETE_7M
    phase: Optional[int] = None
    panel_id: Optional[int] = None


@dataclass(frozen=True)
class PhaseRoute:
    """Worst-case run for one phase: farthest distance and the root-to-light path."""

    distance_m: float = 0.0
    path: Tuple[Coordinate, ...] = ()


@dataclass(frozen=True)
class Panel:
    id: int
    position: Coordinate
    routing: Dict[int, PhaseRoute] = field(default_factory=dict)


@dataclass(frozen=True)
class ManualLink:
    id: str
    start_light_id: str
    end_light_id: str


@dataclass(frozen=True)
class WireSegment:
    path: Tuple[Coordinate, Coordinate]
    phase: Union[int, str]
    panel_id: int


@dataclass(frozen=True)
class CalculationParams:
    cable_type: str = "AL_PRE_2x25"
    voltage_v: float = 230.0
    power_factor: float = 0.95


@dataclass(frozen=True)
class ProjectState:
    """Immutable snapshot of a planning session."""

    roads: Tuple[Road, ...] = ()
    lights: Tuple[Light, ...] = ()
    panels: Tuple[Panel, ...] = ()
    manual_links: Tuple[ManualLink, ...] = ()
    wire_segments: Tuple[WireSegment, ...] = ()
    boundary: Tuple[Coordinate, ...] = ()
    spacing_m: float = 30.0
    light_power_w: float = 42.0
    calculation: CalculationParams = field(default_factory=CalculationParams)
    hidden_panels: Tuple[int, ...] = ()
    hidden_phases: Tuple[int, ...] = ()

    def panel(self, panel_id: int) -> Optional[Panel]:
        return next((p for p in self.panels if p.id == panel_id), None)

    def lights_for_panel(self, panel_id: int) -> List[Light]:
        return [light for light in self.lights if light.panel_id == panel_id]


class _BaseModel(BaseModel):
    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }


class CoordinateModel(_BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_dataclass(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class RoadModel(_BaseModel):
    id: str
    name: str = ""
    path: List[CoordinateModel] = Field(min_length=2)

    def to_dataclass(self) -> Road:
        return Road(id=self.id, name=self.name, path=tuple(p.to_dataclass() for p in self.path))


class LightModel(_BaseModel):
    id: str
    road_id: str = MANUAL_ROAD_ID
    position: CoordinateModel
    power_w: float = Field(gt=0)
    pole_type: PoleType = PoleType.CONCRETE_7M
    phase: Optional[Literal[1, 2, 3]] = None
    panel_id: Optional[int] = None

    def to_dataclass(self) -> Light:
        return Light(
            id=self.id,
            road_id=self.road_id,
            position=self.position.to_dataclass(),
            power_w=self.power_w,
            pole_type=self.pole_type,
            phase=self.phase,
            panel_id=self.panel_id,
        )


class PhaseRouteModel(_BaseModel):
    distance_m: float = Field(default=0.0, ge=0)
    path: List[CoordinateModel] = Field(default_factory=list)

    def to_dataclass(self) -> PhaseRoute:
        return PhaseRoute(distance_m=self.distance_m, path=tuple(p.to_dataclass() for p in self.path))


class PanelModel(_BaseModel):
    id: int
    position: CoordinateModel
    routing: Dict[int, PhaseRouteModel] = Field(default_factory=dict)

    @field_validator("routing")
    @classmethod
    def _known_phases(cls, value: Dict[int, PhaseRouteModel]) -> Dict[int, PhaseRouteModel]:
        unknown = sorted(set(value) - set(PHASES))
        if unknown:
            raise ValueError(f"routing keys must be phases 1-3, got {unknown}")
        return value

    def to_dataclass(self) -> Panel:
        return Panel(
            id=self.id,
            position=self.position.to_dataclass(),
            routing={phase: route.to_dataclass() for phase, route in sorted(self.routing.items())},
        )


class ManualLinkModel(_BaseModel):
    id: str
    start_light_id: str
    end_light_id: str

    def to_dataclass(self) -> ManualLink:
        return ManualLink(**self.model_dump())


class WireSegmentModel(_BaseModel):
    path: List[CoordinateModel] = Field(min_length=2, max_length=2)
    phase: Union[Literal[1, 2, 3], Literal["mixed"]]
    panel_id: int

    def to_dataclass(self) -> WireSegment:
        start, end = (p.to_dataclass() for p in self.path)
        return WireSegment(path=(start, end), phase=self.phase, panel_id=self.panel_id)


class CalculationParamsModel(_BaseModel):
    cable_type: str = "AL_PRE_2x25"
    voltage_v: float = 230.0
    power_factor: float = 0.95

    def to_dataclass(self) -> CalculationParams:
        return CalculationParams(**self.model_dump())


class ProjectModel(_BaseModel):
    version: int = DOCUMENT_VERSION
    boundary: List[CoordinateModel] = Field(default_factory=list)
    roads: List[RoadModel] = Field(default_factory=list)
    lights: List[LightModel] = Field(default_factory=list)
    panels: List[PanelModel] = Field(default_factory=list)
    spacing_m: float = Field(default=30.0, gt=0)
    light_power_w: float = Field(default=42.0, gt=0)
    manual_links: List[ManualLinkModel] = Field(default_factory=list)
    wire_segments: List[WireSegmentModel] = Field(default_factory=list)
    calculation: CalculationParamsModel = Field(default_factory=CalculationParamsModel)
    hidden_panels: List[int] = Field(default_factory=list)
    hidden_phases: List[int] = Field(default_factory=list)

    def to_dataclass(self) -> ProjectState:
        return ProjectState(
            roads=tuple(road.to_dataclass() for road in self.roads),
            lights=tuple(light.to_dataclass() for light in self.lights),
            panels=tuple(panel.to_dataclass() for panel in self.panels),
            manual_links=tuple(link.to_dataclass() for link in self.manual_links),
            wire_segments=tuple(seg.to_dataclass() for seg in self.wire_segments),
            boundary=tuple(p.to_dataclass() for p in self.boundary),
            spacing_m=self.spacing_m,
            light_power_w=self.light_power_w,
            calculation=self.calculation.to_dataclass(),
            hidden_panels=tuple(self.hidden_panels),
            hidden_phases=tuple(self.hidden_phases),
        )


def dump_project(state: ProjectState) -> Dict[str, Any]:
    """Return the version-1 document for ``state`` as plain JSON-ready data."""

    try:
        model = ProjectModel.model_validate({"version": DOCUMENT_VERSION, **asdict(state)})
    except ValidationError as exc:
        raise ProjectValidationError("Project state does not form a valid document", exc.errors()) from exc
    return model.model_dump(mode="json")


def load_project(data: Dict[str, Any]) -> ProjectState:
    """Validate a project dictionary and return a :class:`ProjectState`."""

    if data.get("version", DOCUMENT_VERSION) != DOCUMENT_VERSION:
        raise ProjectValidationError(f"Unsupported project version {data.get('version')!r}")
    try:
        model = ProjectModel.model_validate(data)
    except ValidationError as exc:
        raise ProjectValidationError("Invalid project document", exc.errors()) from exc
    return model.to_dataclass()


def load_project_file(path: str | Path) -> ProjectState:
    """Load and validate a project document from a JSON file."""

    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    return load_project(data)


def save_project_file(state: ProjectState, path: str | Path) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(dump_project(state), indent=2), encoding="utf-8")
    return output_path
