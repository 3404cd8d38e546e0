"""Tests for trigger, reachability and orphan analysis."""

from flowcheck.graph.model import GraphSnapshot
from flowcheck.graph.reachability import (
    analyze_reachability,
    find_orphans,
    orphan_findings,
    reachability_findings,
    trigger_findings,
)
from flowcheck.schema import SchemaResolver, default_registry
from flowcheck.validation.findings import FindingCode, Severity

KINDS = {"T": "manual_trigger", "W": "webhook_trigger", "I": "if", "S": "switch"}


def _snapshot(node_ids, pairs, parents=None):
    parents = parents or {}
    nodes = [
        {"id": n, "kind": KINDS.get(n, "set"), "parent_id": parents.get(n)} for n in node_ids
    ]
    edges = [{"source": s, "target": t} for s, t in pairs]
    return GraphSnapshot.from_raw(nodes, edges)


def _resolver():
    return SchemaResolver(default_registry())


class TestTriggers:
    def test_no_trigger_is_an_error(self):
        findings = trigger_findings(_snapshot("A", []), _resolver())
        assert [f.code for f in findings] == [FindingCode.NO_TRIGGER]
        assert findings[0].severity == Severity.ERROR

    def test_single_trigger_is_fine(self):
        assert trigger_findings(_snapshot("TA", [("T", "A")]), _resolver()) == []

    def test_multiple_triggers_warn(self):
        snapshot = GraphSnapshot.from_raw(
            [{"id": "W", "kind": "webhook_trigger"}, {"id": "X", "kind": "schedule_trigger"}], []
        )
        findings = trigger_findings(snapshot, _resolver())
        assert [f.code for f in findings] == [FindingCode.MULTIPLE_TRIGGERS]
        assert "2 triggers" in findings[0].message

    def test_manual_trigger_suppresses_multiple_warning(self):
        assert trigger_findings(_snapshot("TW", []), _resolver()) == []

    def test_unregistered_trigger_suffix_counts(self):
        snapshot = GraphSnapshot.from_raw([{"id": "x", "kind": "custom_trigger"}], [])
        assert trigger_findings(snapshot, _resolver()) == []


class TestAnalyzeReachability:
    def test_linear_graph_is_reachable(self):
        report = analyze_reachability(_snapshot("TAB", [("T", "A"), ("A", "B")]), _resolver())
        assert report.trigger_ids == ("T",)
        assert report.unreachable == ()
        assert report.conditionally_reachable == ()

    def test_disconnected_island_is_unreachable(self):
        report = analyze_reachability(
            _snapshot("TABC", [("T", "A"), ("B", "C")]), _resolver()
        )
        assert report.unreachable == ("B", "C")

    def test_branch_targets_are_conditional(self):
        report = analyze_reachability(
            _snapshot("TIAB", [("T", "I"), ("I", "A"), ("I", "B")]), _resolver()
        )
        assert report.conditionally_reachable == ("A", "B")
        assert report.unreachable == ()

    def test_unconditional_path_wins_over_branch(self):
        report = analyze_reachability(
            _snapshot("TIA", [("T", "I"), ("I", "A"), ("T", "A")]), _resolver()
        )
        assert report.conditionally_reachable == ()

    def test_cut_off_node_fed_only_by_branch_is_conditional(self):
        # S is not reachable itself, but its targets depend on a branch
        report = analyze_reachability(_snapshot("TSA", [("S", "A")]), _resolver())
        assert report.conditionally_reachable == ("A",)
        assert report.unreachable == ("S",)

    def test_without_triggers_everything_is_unreachable(self):
        report = analyze_reachability(_snapshot("AB", [("A", "B")]), _resolver())
        assert report.trigger_ids == ()
        assert report.unreachable == ("A", "B")


class TestOrphansAndFindings:
    def test_orphans_exclude_triggers_and_grouped_nodes(self):
        snapshot = _snapshot("TAGB", [("T", "B")], parents={"G": "group-1"})
        assert find_orphans(snapshot, _resolver()) == ["A"]

    def test_orphan_is_not_also_unreachable(self):
        snapshot = _snapshot("TABC", [("T", "A"), ("B", "A")])
        resolver = _resolver()
        orphans = find_orphans(snapshot, resolver)
        findings = reachability_findings(analyze_reachability(snapshot, resolver), snapshot, orphans)
        findings += orphan_findings(orphans, snapshot)

        by_node = {(f.node_id, f.code) for f in findings}
        assert ("C", FindingCode.ORPHAN_NODE) in by_node
        assert ("C", FindingCode.UNREACHABLE_NODE) not in by_node
        assert ("B", FindingCode.UNREACHABLE_NODE) in by_node

    def test_no_per_node_findings_without_trigger(self):
        snapshot = _snapshot("AB", [("A", "B")])
        report = analyze_reachability(snapshot, _resolver())
        assert reachability_findings(report, snapshot) == []

    def test_conditional_nodes_are_info(self):
        snapshot = _snapshot("TIA", [("T", "I"), ("I", "A")])
        findings = reachability_findings(analyze_reachability(snapshot, _resolver()), snapshot)
        assert [(f.code, f.severity, f.node_id) for f in findings] == [
            (FindingCode.CONDITIONALLY_REACHABLE, Severity.INFO, "A")
        ]
