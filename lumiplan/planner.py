"""Pure planning passes and edit operations over :class:`ProjectState` snapshots.

Every function takes a snapshot and returns a new one. Graphs are rebuilt from
roads, lights and manual links on each pass; nothing is carried between calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from lumiplan.analysis.phase_balance import balance_phases
from lumiplan.analysis.topology import extract_topology
from lumiplan.config import PlannerConfig, load_config
from lumiplan.geo.geometry import distance_m
from lumiplan.network.graph import STITCH_THRESHOLD_M, build_graph
from lumiplan.network.routing import shortest_path_tree
from lumiplan.placement.clustering import centroid, choose_anchor, kmeans, recommend_panel_count
from lumiplan.placement.spacing import generate_lights
from lumiplan.schema.models import (
    MANUAL_ROAD_ID,
    PHASES,
    Coordinate,
    Light,
    ManualLink,
    Panel,
    PoleType,
    ProjectState,
    Road,
    WireSegment,
)

logger = logging.getLogger(__name__)


class ManualLinkError(ValueError):
    """Raised when an explicit link request cannot be honoured."""


class UnknownEntityError(KeyError):
    """Raised when an edit names a light or panel that does not exist."""


@dataclass
class PanelPlan:
    panel: Panel
    lights: List[Light] = field(default_factory=list)
    segments: List[WireSegment] = field(default_factory=list)


def _stitch_threshold(config: Optional[PlannerConfig]) -> float:
    return config.stitch_threshold_m if config is not None else STITCH_THRESHOLD_M


def plan_panel(
    roads: Sequence[Road],
    panel: Panel,
    lights: Sequence[Light],
    all_lights: Optional[Sequence[Light]] = None,
    links: Iterable[ManualLink] = (),
    reassign_phases: bool = True,
    stitch_threshold_m: float = STITCH_THRESHOLD_M,
) -> PanelPlan:
    """Graph build, routing, optional phase balancing and topology for one panel.

    ``lights`` are the panel's lights; ``all_lights`` resolves manual link
    endpoints and defaults to ``lights``.
    """

    light_map = {light.id: light for light in (all_lights if all_lights is not None else lights)}
    light_map.update({light.id: light for light in lights})
    graph = build_graph(roads, links, light_map, panel.id, stitch_threshold_m)
    if len(graph) == 0:
        unroutable = [replace(light, phase=None) for light in lights]
        return PanelPlan(panel=replace(panel, routing={}), lights=unroutable)

    root = graph.nearest_node(panel.position)
    tree = shortest_path_tree(graph, root)
    nearest = {light.id: graph.nearest_node(light.position) for light in lights}

    planned = list(lights)
    if reassign_phases:
        assignment = balance_phases(graph, tree, planned, nearest)
        planned = [replace(light, phase=assignment.phases[light.id]) for light in planned]

    topology = extract_topology(graph, tree, planned, nearest, panel.id)
    return PanelPlan(panel=replace(panel, routing=topology.routing), lights=planned, segments=topology.segments)


def link_is_valid(link: ManualLink, lights: Dict[str, Light]) -> bool:
    start = lights.get(link.start_light_id)
    end = lights.get(link.end_light_id)
    if start is None or end is None:
        return False
    return start.panel_id == end.panel_id and start.phase == end.phase


def prune_manual_links(lights: Iterable[Light], links: Iterable[ManualLink]) -> List[ManualLink]:
    """Drop links whose lights are gone or no longer share panel and phase."""

    by_id = {light.id: light for light in lights}
    return [link for link in links if link_is_valid(link, by_id)]


def _recompute(
    state: ProjectState,
    lights: Sequence[Light],
    panel_ids: Iterable[int],
    reassign_phases: bool,
    config: Optional[PlannerConfig] = None,
    panels: Optional[Sequence[Panel]] = None,
) -> ProjectState:
    panels = list(panels if panels is not None else state.panels)
    panels_by_id = {panel.id: panel for panel in panels}
    targets = [pid for pid in dict.fromkeys(panel_ids) if pid in panels_by_id]
    links = prune_manual_links(lights, state.manual_links)
    by_id = {light.id: light for light in lights}
    segments = [seg for seg in state.wire_segments if seg.panel_id not in targets]

    for pid in targets:
        members = [light for light in lights if light.panel_id == pid]
        if not members:
            panels_by_id[pid] = replace(panels_by_id[pid], routing={})
            continue
        plan = plan_panel(
            state.roads,
            panels_by_id[pid],
            members,
            all_lights=lights,
            links=links,
            reassign_phases=reassign_phases,
            stitch_threshold_m=_stitch_threshold(config),
        )
        panels_by_id[pid] = plan.panel
        by_id.update({light.id: light for light in plan.lights})
        segments.extend(plan.segments)

    new_lights = tuple(by_id[light.id] for light in lights)
    return replace(
        state,
        lights=new_lights,
        panels=tuple(panels_by_id[panel.id] for panel in panels),
        wire_segments=tuple(segments),
        manual_links=tuple(prune_manual_links(new_lights, links)),
    )


def setup_plan(
    roads: Sequence[Road],
    lights: Sequence[Light],
    panel_count: int,
    config: Optional[PlannerConfig] = None,
    boundary: Sequence[Coordinate] = (),
) -> ProjectState:
    """Cluster ``lights`` into ``panel_count`` panels, anchor each one and plan it."""

    cfg = config or load_config()
    state = ProjectState(
        roads=tuple(roads),
        lights=tuple(replace(light, panel_id=None, phase=None) for light in lights),
        boundary=tuple(boundary),
        spacing_m=cfg.spacing_m,
        light_power_w=cfg.light_power_w,
        calculation=cfg.calculation_params(),
    )
    if not lights or panel_count < 1:
        return state

    positions = [light.position for light in lights]
    if panel_count > 1:
        assignments = kmeans(positions, panel_count, cfg.kmeans_max_iterations)
    else:
        assignments = [0] * len(lights)

    assigned: Dict[str, int] = {}
    panels: List[Panel] = []
    for cluster in range(panel_count):
        members = [light for light, a in zip(lights, assignments) if a == cluster]
        if not members:
            continue
        anchor = choose_anchor(centroid([m.position for m in members]), roads)
        if anchor is None:
            continue
        panel_id = cluster + 1
        panels.append(Panel(id=panel_id, position=anchor))
        assigned.update({m.id: panel_id for m in members})

    planned = [replace(light, panel_id=assigned.get(light.id)) for light in state.lights]
    logger.info("plan set up: %d lights, %d panels requested, %d anchored", len(lights), panel_count, len(panels))
    return _recompute(state, planned, [p.id for p in panels], True, cfg, panels=panels)


def create_plan(
    roads: Sequence[Road],
    config: Optional[PlannerConfig] = None,
    panel_count: Optional[int] = None,
    boundary: Sequence[Coordinate] = (),
) -> ProjectState:
    """Generate lights along ``roads`` and set up a plan for them.

    When ``panel_count`` is omitted the recommended count is used.
    """

    cfg = config or load_config()
    lights = generate_lights(
        roads,
        cfg.spacing_m,
        cfg.light_power_w,
        cfg.default_pole_type,
        cfg.min_road_length_m,
    )
    if panel_count is None:
        panel_count = recommend_panel_count(lights, cfg.max_lights_per_panel, cfg.max_power_per_panel_w)
    return setup_plan(roads, lights, panel_count, cfg, boundary)


def _nearest_panel(position: Coordinate, panels: Sequence[Panel]) -> Optional[int]:
    best = (float("inf"), None)
    for panel in panels:
        d = distance_m(position, panel.position)
        if d < best[0]:
            best = (d, panel.id)
    return best[1]


def replan_from_panels(state: ProjectState, config: Optional[PlannerConfig] = None) -> ProjectState:
    """Attach every light to its nearest panel and rebalance every panel."""

    if not state.panels or not state.lights or not state.roads:
        return state
    lights = [replace(light, panel_id=_nearest_panel(light.position, state.panels)) for light in state.lights]
    logger.info("replanning %d lights over %d panels", len(lights), len(state.panels))
    return _recompute(replace(state, wire_segments=()), lights, [p.id for p in state.panels], True, config)


def move_panel(
    state: ProjectState,
    panel_id: int,
    position: Coordinate,
    config: Optional[PlannerConfig] = None,
) -> ProjectState:
    if state.panel(panel_id) is None:
        raise UnknownEntityError(f"unknown panel {panel_id}")
    if not state.roads or not state.lights:
        return state
    panels = tuple(replace(p, position=position) if p.id == panel_id else p for p in state.panels)
    return replan_from_panels(replace(state, panels=panels), config)


def _require_light(state: ProjectState, light_id: str) -> Light:
    light = next((l for l in state.lights if l.id == light_id), None)
    if light is None:
        raise UnknownEntityError(f"unknown light {light_id}")
    return light


def _require_lights(state: ProjectState, light_ids: Iterable[str]) -> None:
    known = {light.id for light in state.lights}
    missing = sorted(set(light_ids) - known)
    if missing:
        raise UnknownEntityError(f"unknown lights {missing}")


def update_light(state: ProjectState, light: Light, config: Optional[PlannerConfig] = None) -> ProjectState:
    """Replace a light and recompute its panel without touching other phases."""

    previous = _require_light(state, light.id)
    if light.panel_id is not None and state.panel(light.panel_id) is None:
        raise UnknownEntityError(f"unknown panel {light.panel_id}")
    lights = [light if l.id == light.id else l for l in state.lights]
    affected = [pid for pid in (previous.panel_id, light.panel_id) if pid is not None]
    return _recompute(state, lights, affected, False, config)


def _next_manual_id(lights: Sequence[Light]) -> str:
    taken = {light.id for light in lights}
    n = len(lights) + 1
    while f"manual-{n}" in taken:
        n += 1
    return f"manual-{n}"


def nearest_road_id(position: Coordinate, roads: Sequence[Road]) -> str:
    best = (float("inf"), MANUAL_ROAD_ID)
    for road in roads:
        for point in road.path:
            d = distance_m(position, point)
            if d < best[0]:
                best = (d, road.id)
    return best[1]


def add_light(
    state: ProjectState,
    position: Coordinate,
    power_w: float,
    pole_type: PoleType,
    phase: Optional[int],
    panel_id: int,
    config: Optional[PlannerConfig] = None,
    light_id: Optional[str] = None,
) -> ProjectState:
    """Insert a light with an explicit panel and phase, then recompute that panel."""

    if state.panel(panel_id) is None:
        raise UnknownEntityError(f"unknown panel {panel_id}")
    if phase is not None and phase not in PHASES:
        raise ValueError(f"phase must be one of {PHASES}, got {phase}")
    if power_w <= 0:
        raise ValueError("power_w must be positive")
    light = Light(
        id=light_id or _next_manual_id(state.lights),
        road_id=nearest_road_id(position, state.roads),
        position=position,
        power_w=power_w,
        pole_type=pole_type,
        phase=phase,
        panel_id=panel_id,
    )
    return _recompute(state, [*state.lights, light], [panel_id], False, config)


def reset(state: ProjectState) -> ProjectState:
    """Empty plan that keeps spacing, power and calculation settings."""

    return ProjectState(
        spacing_m=state.spacing_m,
        light_power_w=state.light_power_w,
        calculation=state.calculation,
    )


def delete_lights(
    state: ProjectState,
    light_ids: Iterable[str],
    config: Optional[PlannerConfig] = None,
) -> ProjectState:
    """Remove lights; panels left empty are destroyed, and removing every
    light resets the plan."""

    doomed = set(light_ids)
    _require_lights(state, doomed)
    removed = [light for light in state.lights if light.id in doomed]
    if not removed:
        return state
    remaining = [light for light in state.lights if light.id not in doomed]
    if not remaining:
        return reset(state)

    affected = list(dict.fromkeys(l.panel_id for l in removed if l.panel_id is not None))
    emptied = {pid for pid in affected if not any(l.panel_id == pid for l in remaining)}
    trimmed = replace(
        state,
        panels=tuple(p for p in state.panels if p.id not in emptied),
        wire_segments=tuple(s for s in state.wire_segments if s.panel_id not in emptied),
    )
    return _recompute(trimmed, remaining, [pid for pid in affected if pid not in emptied], False, config)


def delete_light(state: ProjectState, light_id: str, config: Optional[PlannerConfig] = None) -> ProjectState:
    _require_light(state, light_id)
    return delete_lights(state, [light_id], config)


def bulk_update_lights(
    state: ProjectState,
    light_ids: Iterable[str],
    power_w: Optional[float] = None,
    pole_type: Optional[PoleType] = None,
    phase: Optional[int] = None,
    config: Optional[PlannerConfig] = None,
) -> ProjectState:
    selected = set(light_ids)
    _require_lights(state, selected)
    if not selected:
        return state
    if power_w is not None and power_w <= 0:
        raise ValueError("power_w must be positive")
    if phase is not None and phase not in PHASES:
        raise ValueError(f"phase must be one of {PHASES}, got {phase}")

    changes = {}
    if power_w is not None:
        changes["power_w"] = power_w
    if pole_type is not None:
        changes["pole_type"] = pole_type
    if phase is not None:
        changes["phase"] = phase

    lights = [replace(l, **changes) if l.id in selected else l for l in state.lights]
    affected = [l.panel_id for l in state.lights if l.id in selected and l.panel_id is not None]
    return _recompute(state, lights, affected, False, config)


def add_manual_link(
    state: ProjectState,
    start_light_id: str,
    end_light_id: str,
    config: Optional[PlannerConfig] = None,
) -> ProjectState:
    """Link two lights of the same panel and phase and re-derive that panel's wiring."""

    by_id = {light.id: light for light in state.lights}
    start = by_id.get(start_light_id)
    end = by_id.get(end_light_id)
    if start is None or end is None:
        raise ManualLinkError(f"unknown light in link {start_light_id!r} -> {end_light_id!r}")
    if start.id == end.id:
        raise ManualLinkError("a light cannot be linked to itself")
    if start.panel_id != end.panel_id or start.phase != end.phase:
        raise ManualLinkError("linked lights must share the same panel and phase")

    pair = {start.id, end.id}
    if any({link.start_light_id, link.end_light_id} == pair for link in state.manual_links):
        return state

    link = ManualLink(id=f"manual-{start.id}-{end.id}", start_light_id=start.id, end_light_id=end.id)
    linked = replace(state, manual_links=(*state.manual_links, link))
    if start.panel_id is None:
        return linked
    return _recompute(linked, list(state.lights), [start.panel_id], False, config)


def manual_link_segments(state: ProjectState) -> List[WireSegment]:
    """Renderable segment per valid link, tagged with the first light's phase."""

    by_id = {light.id: light for light in state.lights}
    segments: List[WireSegment] = []
    for link in state.manual_links:
        start = by_id.get(link.start_light_id)
        end = by_id.get(link.end_light_id)
        if start is None or end is None or start.phase is None or start.panel_id is None:
            continue
        segments.append(WireSegment(path=(start.position, end.position), phase=start.phase, panel_id=start.panel_id))
    return segments


class PlanSession:
    """Holds the current snapshot; only the newest requested pass may land."""

    def __init__(self, state: Optional[ProjectState] = None) -> None:
        self.state = state or ProjectState()
        self._revision = 0

    @property
    def revision(self) -> int:
        return self._revision

    def begin(self) -> int:
        self._revision += 1
        return self._revision

    def commit(self, revision: int, state: ProjectState) -> bool:
        if revision != self._revision:
            logger.debug("discarding superseded pass %d (current %d)", revision, self._revision)
            return False
        self.state = state
        return True

    def apply(self, operation: Callable[..., ProjectState], *args, **kwargs) -> ProjectState:
        revision = self.begin()
        self.commit(revision, operation(self.state, *args, **kwargs))
        return self.state


__all__ = [
    "ManualLinkError",
    "PanelPlan",
    "PlanSession",
    "UnknownEntityError",
    "add_light",
    "add_manual_link",
    "bulk_update_lights",
    "create_plan",
    "delete_light",
    "delete_lights",
    "link_is_valid",
    "manual_link_segments",
    "move_panel",
    "nearest_road_id",
    "plan_panel",
    "prune_manual_links",
    "replan_from_panels",
    "reset",
    "setup_plan",
    "update_light",
]
