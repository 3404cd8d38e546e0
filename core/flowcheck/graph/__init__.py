"""Graph structures: snapshot adapter, cycle detection, reachability."""

from flowcheck.graph.cycles import CycleReport, cycle_findings, detect_cycle
from flowcheck.graph.model import Adjacency, GraphEdge, GraphNode, GraphSnapshot
from flowcheck.graph.reachability import (
    ReachabilityReport,
    analyze_reachability,
    find_orphans,
    find_triggers,
    orphan_findings,
    reachability_findings,
    trigger_findings,
)

__all__ = [
    # Model
    "GraphNode",
    "GraphEdge",
    "GraphSnapshot",
    "Adjacency",
    # Cycles
    "CycleReport",
    "detect_cycle",
    "cycle_findings",
    # Reachability
    "ReachabilityReport",
    "analyze_reachability",
    "find_triggers",
    "find_orphans",
    "trigger_findings",
    "reachability_findings",
    "orphan_findings",
]
