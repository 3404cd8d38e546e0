"""
Reachability - which nodes can actually run.

Every run starts at a trigger node. A multi-source breadth-first search
seeded with all triggers classifies the remaining nodes:

- reachable: some path from a trigger never passes a branching node's
  outgoing edge, so the node runs whenever the workflow runs
- conditionally reachable: every path from a trigger goes through an
  IF/Switch/Loop edge, or the node is cut off but fed only by branching
  nodes; it runs only when a particular branch is taken
- unreachable: nothing leads to it

Orphans (no incident edge at all) are found here too, since the orphan and
unreachable findings must be reconciled: an orphan never also gets an
UNREACHABLE_NODE warning.
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from flowcheck.graph.model import GraphSnapshot
from flowcheck.schema.registry import SchemaResolver
from flowcheck.validation.findings import Finding, FindingCode

logger = logging.getLogger(__name__)

MANUAL_TRIGGER_KIND = "manual_trigger"


@dataclass(frozen=True)
class ReachabilityReport:
    """Disjoint classification of non-trigger nodes, in input order."""

    trigger_ids: tuple[str, ...] = ()
    unreachable: tuple[str, ...] = ()
    conditionally_reachable: tuple[str, ...] = ()


def find_triggers(snapshot: GraphSnapshot, resolver: SchemaResolver) -> list[str]:
    return [node.id for node in snapshot.nodes.values() if resolver.is_trigger(node.kind)]


def _bfs(
    seeds: Iterable[str],
    snapshot: GraphSnapshot,
    follow: Callable[[str], bool],
) -> set[str]:
    """Visit from seeds; edges leaving a node are used only if follow(node_id)."""
    reached: set[str] = set()
    queue = deque(seeds)
    while queue:
        current = queue.popleft()
        if current in reached:
            continue
        reached.add(current)
        if not follow(current):
            continue
        queue.extend(step.target_id for step in snapshot.adjacency[current])
    return reached


def analyze_reachability(
    snapshot: GraphSnapshot, resolver: SchemaResolver
) -> ReachabilityReport:
    triggers = find_triggers(snapshot, resolver)
    trigger_set = set(triggers)
    candidates = [node_id for node_id in snapshot.nodes if node_id not in trigger_set]

    if not triggers:
        # Without an entry point nothing can run
        return ReachabilityReport(unreachable=tuple(candidates))

    branching = {
        node.id for node in snapshot.nodes.values() if resolver.is_branching(node.kind)
    }

    always = _bfs(triggers, snapshot, follow=lambda node_id: node_id not in branching)
    anywhere = _bfs(triggers, snapshot, follow=lambda node_id: True)

    unreachable: list[str] = []
    conditional: list[str] = []
    for node_id in candidates:
        if node_id in always:
            continue
        if node_id in anywhere:
            conditional.append(node_id)
            continue

        incoming = snapshot.incoming[node_id]
        if incoming and all(edge.source in branching for edge in incoming):
            conditional.append(node_id)
        else:
            unreachable.append(node_id)

    logger.debug(
        f"Reachability: {len(triggers)} triggers, {len(unreachable)} unreachable, "
        f"{len(conditional)} conditional"
    )
    return ReachabilityReport(
        trigger_ids=tuple(triggers),
        unreachable=tuple(unreachable),
        conditionally_reachable=tuple(conditional),
    )


def find_orphans(snapshot: GraphSnapshot, resolver: SchemaResolver) -> list[str]:
    """Nodes with no incident edge, ignoring triggers and nodes inside a group."""
    connected: set[str] = set()
    for edge in snapshot.edges:
        connected.add(edge.source)
        connected.add(edge.target)

    return [
        node.id
        for node in snapshot.nodes.values()
        if node.id not in connected
        and not resolver.is_trigger(node.kind)
        and node.parent_id is None
    ]


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


def trigger_findings(snapshot: GraphSnapshot, resolver: SchemaResolver) -> list[Finding]:
    triggers = find_triggers(snapshot, resolver)
    if not triggers:
        return [
            Finding.error(
                FindingCode.NO_TRIGGER,
                "Workflow must have at least one trigger node to start execution.",
            )
        ]

    kinds = {snapshot.nodes[node_id].kind for node_id in triggers}
    if len(triggers) > 1 and MANUAL_TRIGGER_KIND not in kinds:
        return [
            Finding.warning(
                FindingCode.MULTIPLE_TRIGGERS,
                f"Workflow has {len(triggers)} triggers. "
                "Ensure logic handles multiple entry points.",
            )
        ]
    return []


def reachability_findings(
    report: ReachabilityReport,
    snapshot: GraphSnapshot,
    orphans: Iterable[str] = (),
) -> list[Finding]:
    """
    UNREACHABLE_NODE warnings and CONDITIONALLY_REACHABLE info.

    With no triggers the single NO_TRIGGER error already covers every node,
    so no per-node findings are produced. Orphans are skipped by exact id.
    """
    if not report.trigger_ids:
        return []

    orphan_ids = set(orphans)
    findings = [
        Finding.warning(
            FindingCode.UNREACHABLE_NODE,
            f'Node "{snapshot.display_name(node_id)}" is not reachable from any trigger',
            node_id=node_id,
        )
        for node_id in report.unreachable
        if node_id not in orphan_ids
    ]
    findings.extend(
        Finding.info(
            FindingCode.CONDITIONALLY_REACHABLE,
            f'Node "{snapshot.display_name(node_id)}" is only reachable under certain conditions',
            node_id=node_id,
        )
        for node_id in report.conditionally_reachable
    )
    return findings


def orphan_findings(orphans: Iterable[str], snapshot: GraphSnapshot) -> list[Finding]:
    return [
        Finding.warning(
            FindingCode.ORPHAN_NODE,
            f'Node "{snapshot.display_name(node_id)}" has no connections',
            node_id=node_id,
        )
        for node_id in orphans
    ]
