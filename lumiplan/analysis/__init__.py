"""Phase balancing, wiring topology, voltage drop and summaries."""
from .phase_balance import Branch, PhaseAssignment, balance_phases, least_loaded_phase
from .summary import analyze, panel_summary, visible_lights, visible_segments, voltage_drop_table
from .topology import Topology, extract_topology
from .voltage_drop import CABLE_SPECS, cable_spec, run_voltage_drop, voltage_drop_percent

__all__ = [
    "Branch",
    "CABLE_SPECS",
    "PhaseAssignment",
    "Topology",
    "analyze",
    "balance_phases",
    "cable_spec",
    "extract_topology",
    "least_loaded_phase",
    "panel_summary",
    "run_voltage_drop",
    "visible_lights",
    "visible_segments",
    "voltage_drop_percent",
    "voltage_drop_table",
]
