"""
Cycle detection - workflows must be directed acyclic graphs.

Three-colour depth-first search (unvisited / in progress / done). Roots are
tried in node input order, so when a graph holds several cycles the one
reported is the first one reached from the earliest node. That choice is
deterministic for a given input but depends on input order.

The search is iterative: canvases with long chains must not hit the
interpreter recursion limit.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

from flowcheck.graph.model import Adjacency, GraphSnapshot
from flowcheck.validation.findings import Finding, FindingCode

logger = logging.getLogger(__name__)

ERROR_HANDLE_MARKER = "error"


class _Color(IntEnum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


@dataclass(frozen=True)
class CycleReport:
    """Outcome of a cycle search."""

    is_acyclic: bool = True
    cycle_node_ids: tuple[str, ...] = ()
    cycle_edge_ids: tuple[str, ...] = ()


def _traversable_adjacency(
    snapshot: GraphSnapshot, ignore_error_handles: bool
) -> dict[str, list[Adjacency]]:
    if not ignore_error_handles:
        return snapshot.adjacency

    # Exception-routing edges may legitimately point back upstream (retry paths)
    error_edges = {
        edge.id
        for edge in snapshot.edges
        if edge.source_handle and ERROR_HANDLE_MARKER in edge.source_handle
    }
    return {
        node_id: [step for step in steps if step.edge_id not in error_edges]
        for node_id, steps in snapshot.adjacency.items()
    }


def _search_from(
    root: str,
    adjacency: dict[str, list[Adjacency]],
    color: dict[str, _Color],
) -> CycleReport | None:
    color[root] = _Color.IN_PROGRESS
    path = [root]
    # path_edges[i] is the edge taken from path[i] to path[i + 1]
    path_edges: list[str] = []
    stack: list[Iterator[Adjacency]] = [iter(adjacency[root])]

    while stack:
        step = next(stack[-1], None)
        if step is None:
            stack.pop()
            color[path.pop()] = _Color.DONE
            if path_edges:
                path_edges.pop()
            continue

        state = color[step.target_id]
        if state == _Color.IN_PROGRESS:
            start = path.index(step.target_id)
            return CycleReport(
                is_acyclic=False,
                cycle_node_ids=tuple(dict.fromkeys(path[start:])),
                cycle_edge_ids=tuple(dict.fromkeys([*path_edges[start:], step.edge_id])),
            )
        if state == _Color.UNVISITED:
            color[step.target_id] = _Color.IN_PROGRESS
            path.append(step.target_id)
            path_edges.append(step.edge_id)
            stack.append(iter(adjacency[step.target_id]))

    return None


def detect_cycle(snapshot: GraphSnapshot, ignore_error_handles: bool = False) -> CycleReport:
    """
    Check that the graph is a DAG.

    Args:
        snapshot: Adapted graph
        ignore_error_handles: Skip edges leaving an error/exception handle

    Returns:
        CycleReport; when a cycle exists it lists the nodes and edges of
        the first cycle found, each de-duplicated in traversal order.
    """
    adjacency = _traversable_adjacency(snapshot, ignore_error_handles)
    color = dict.fromkeys(snapshot.nodes, _Color.UNVISITED)

    for root in snapshot.nodes:
        if color[root] != _Color.UNVISITED:
            continue
        report = _search_from(root, adjacency, color)
        if report is not None:
            logger.debug(f"Cycle found through {list(report.cycle_node_ids)}")
            return report

    return CycleReport()


def cycle_findings(report: CycleReport, snapshot: GraphSnapshot) -> list[Finding]:
    """One CYCLE_DETECTED error plus a NODE_IN_CYCLE warning per member node."""
    if report.is_acyclic:
        return []

    findings = [
        Finding.error(
            FindingCode.CYCLE_DETECTED,
            "Workflow contains a cycle. Cycles are not allowed in workflows.",
            node_id=report.cycle_node_ids[0],
        )
    ]
    for node_id in report.cycle_node_ids:
        findings.append(
            Finding.warning(
                FindingCode.NODE_IN_CYCLE,
                f'Node "{snapshot.display_name(node_id)}" is part of a cycle',
                node_id=node_id,
            )
        )
    return findings
