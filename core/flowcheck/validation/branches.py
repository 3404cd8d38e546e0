"""Structural checks for branching nodes (IF and Switch)."""

import json
from typing import Any

from flowcheck.graph.model import GraphNode, GraphSnapshot
from flowcheck.validation.fields import is_blank
from flowcheck.validation.findings import Finding, FindingCode

IF_KIND = "if"
SWITCH_KIND = "switch"
MIN_SWITCH_CASES = 2


def _handles_out(snapshot: GraphSnapshot, node_id: str) -> list[str]:
    return [e.source_handle for e in snapshot.get_outgoing_edges(node_id) if e.source_handle]


def _count_cases(cases: Any) -> int:
    if isinstance(cases, str):
        try:
            cases = json.loads(cases)
        except json.JSONDecodeError:
            return 0
    if isinstance(cases, list | tuple | dict):
        return len(cases)
    return 0


def _validate_if(node: GraphNode, snapshot: GraphSnapshot) -> list[Finding]:
    findings = []
    if is_blank(node.get("condition")):
        findings.append(
            Finding.error(
                FindingCode.MISSING_CONDITION,
                f'IF node "{node.display_name}" requires a condition',
                node_id=node.id,
                field_id="condition",
            )
        )

    handles = _handles_out(snapshot, node.id)
    has_true = any("true" in h for h in handles)
    has_false = any("false" in h for h in handles)

    if not has_true and not has_false:
        findings.append(
            Finding.warning(
                FindingCode.NO_CONDITIONAL_OUTPUTS,
                f'IF node "{node.display_name}" has no true/false outputs connected',
                node_id=node.id,
            )
        )
    elif not has_false:
        findings.append(
            Finding.warning(
                FindingCode.NO_ELSE_PATH,
                f'IF node "{node.display_name}" has no false (else) path',
                node_id=node.id,
            )
        )
    return findings


def _validate_switch(node: GraphNode, snapshot: GraphSnapshot) -> list[Finding]:
    findings = []
    if _count_cases(node.get("cases")) < MIN_SWITCH_CASES:
        findings.append(
            Finding.warning(
                FindingCode.INSUFFICIENT_CASES,
                f'Switch node "{node.display_name}" should have at least '
                f"{MIN_SWITCH_CASES} cases",
                node_id=node.id,
                field_id="cases",
            )
        )

    if not any("default" in h for h in _handles_out(snapshot, node.id)):
        findings.append(
            Finding.warning(
                FindingCode.NO_DEFAULT_CASE,
                f'Switch node "{node.display_name}" has no default case',
                node_id=node.id,
            )
        )
    return findings


def validate_branches(snapshot: GraphSnapshot) -> list[Finding]:
    findings: list[Finding] = []
    for node in snapshot.nodes.values():
        if node.kind == IF_KIND:
            findings.extend(_validate_if(node, snapshot))
        elif node.kind == SWITCH_KIND:
            findings.extend(_validate_switch(node, snapshot))
    return findings
