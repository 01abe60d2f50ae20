"""Greedy three-phase load balancing over branches and islands."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

from lumiplan.network.graph import RoadGraph
from lumiplan.network.routing import ShortestPathTree, connected_component
from lumiplan.schema.models import PHASES, Light

logger = logging.getLogger(__name__)


@dataclass
class Branch:
    """Lights whose shortest path leaves the root through ``root_node``."""

    root_node: int
    lights: List[Light] = field(default_factory=list)

    @property
    def power_w(self) -> float:
        return sum(light.power_w for light in self.lights)


@dataclass
class PhaseAssignment:
    phases: Dict[str, Optional[int]]
    loads: Dict[int, float]
    branches: List[Branch] = field(default_factory=list)
    islands: List[List[Light]] = field(default_factory=list)


def least_loaded_phase(loads: Mapping[int, float]) -> int:
    """Phase with the lowest running total; ties go to the lowest phase number."""

    return min(PHASES, key=lambda phase: loads[phase])


def balance_phases(
    graph: RoadGraph,
    tree: ShortestPathTree,
    lights: Sequence[Light],
    nearest: Mapping[str, Optional[int]],
) -> PhaseAssignment:
    """Assign every routable light to phase 1, 2 or 3.

    Whole branches go to the least-loaded phase, heaviest branch first. Lights
    disconnected from the root are grouped into islands that are placed as a
    unit. Lights on the root node, or reachable without a branch root, are
    placed one at a time last.
    """

    phases: Dict[str, Optional[int]] = {light.id: None for light in lights}
    loads: Dict[int, float] = {phase: 0.0 for phase in PHASES}
    if tree.empty or not lights:
        return PhaseAssignment(phases=phases, loads=loads)

    branches: Dict[int, Branch] = {}
    for node in graph.neighbors(tree.root):
        branches.setdefault(node, Branch(root_node=node))

    loose: List[Light] = []
    stranded: List[Light] = []
    for light in lights:
        node = nearest.get(light.id)
        if node is None:
            continue
        if not tree.reachable(node):
            stranded.append(light)
            continue
        first_hop = tree.branch_root(node) if node != tree.root else None
        if first_hop is not None and first_hop in branches:
            branches[first_hop].lights.append(light)
        else:
            loose.append(light)

    ordered = sorted((b for b in branches.values() if b.lights), key=lambda b: -b.power_w)
    for branch in ordered:
        phase = least_loaded_phase(loads)
        for light in branch.lights:
            phases[light.id] = phase
        loads[phase] += branch.power_w

    islands: List[List[Light]] = []
    placed: Set[str] = set()
    for light in stranded:
        if light.id in placed:
            continue
        component = connected_component(graph, nearest[light.id])
        members = [l for l in stranded if l.id not in placed and nearest[l.id] in component]
        placed.update(l.id for l in members)
        phase = least_loaded_phase(loads)
        for member in members:
            phases[member.id] = phase
        loads[phase] += sum(member.power_w for member in members)
        islands.append(members)

    for light in loose:
        phase = least_loaded_phase(loads)
        phases[light.id] = phase
        loads[phase] += light.power_w

    logger.debug(
        "balanced %d lights: %d branches, %d islands, %d loose; loads %s",
        len(lights),
        len(ordered),
        len(islands),
        len(loose),
        loads,
    )
    return PhaseAssignment(phases=phases, loads=loads, branches=ordered, islands=islands)


__all__ = ["Branch", "PhaseAssignment", "balance_phases", "least_loaded_phase"]
