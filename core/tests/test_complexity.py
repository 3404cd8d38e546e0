"""Tests for timeout limits and the complexity advisory."""

from flowcheck.config import ValidatorConfig
from flowcheck.graph.model import GraphSnapshot
from flowcheck.schema import SchemaResolver, default_registry
from flowcheck.validation.complexity import (
    advise_complexity,
    declared_timeout,
    estimate_runtime,
    validate_timeouts,
)
from flowcheck.validation.findings import Severity


def _config(**overrides):
    values = {
        "max_nodes": 50,
        "max_llm_nodes": 10,
        "default_node_timeout": 60,
        "max_total_timeout": 600,
        "max_node_timeout": 300,
        "backend_url": None,
        "backend_timeout": 10.0,
    }
    values.update(overrides)
    return ValidatorConfig(**values)


def _snapshot(kinds, config=None):
    nodes = [
        {"id": f"n{i}", "kind": kind, "config": dict(config or {})} for i, kind in enumerate(kinds)
    ]
    return GraphSnapshot.from_raw(nodes, [])


def _advise(snapshot, config=None, max_nesting_depth=5):
    resolver = SchemaResolver(default_registry())
    findings = advise_complexity(snapshot, resolver, config or _config(), max_nesting_depth)
    return [str(f.code) for f in findings]


class TestTimeouts:
    def test_declared_timeout(self):
        snapshot = GraphSnapshot.from_raw(
            [
                {"id": "a", "kind": "set", "config": {"timeout_seconds": "30"}},
                {"id": "b", "kind": "set", "config": {"timeout_override": 45}},
                {"id": "c", "kind": "set", "config": {"timeout_seconds": "later"}},
            ],
            [],
        )
        assert declared_timeout(snapshot.nodes["a"]) == 30
        assert declared_timeout(snapshot.nodes["b"]) == 45
        assert declared_timeout(snapshot.nodes["c"]) is None

    def test_non_positive_timeout(self):
        findings = validate_timeouts(_snapshot(["set"], {"timeout_seconds": 0}), _config())
        assert [str(f.code) for f in findings] == ["INVALID_TIMEOUT"]
        assert findings[0].severity == Severity.ERROR

    def test_timeout_over_limit(self):
        findings = validate_timeouts(_snapshot(["set"], {"timeout_seconds": 301}), _config())
        assert [str(f.code) for f in findings] == ["TIMEOUT_EXCEEDS_LIMIT"]
        assert "300s" in findings[0].message

    def test_limit_is_configurable(self):
        snapshot = _snapshot(["set"], {"timeout_seconds": 301})
        assert validate_timeouts(snapshot, _config(max_node_timeout=900)) == []


class TestAdvisory:
    def test_small_workflow_has_no_advice(self):
        assert _advise(_snapshot(["manual_trigger", "set"])) == []

    def test_too_many_nodes(self):
        assert _advise(_snapshot(["set"] * 4), _config(max_nodes=3)) == ["COMPLEX_WORKFLOW"]

    def test_many_llm_nodes(self):
        snapshot = _snapshot(["openai", "gemini", "ollama"])
        assert _advise(snapshot, _config(max_llm_nodes=2)) == ["MANY_LLM_NODES"]

    def test_many_subworkflows(self):
        snapshot = _snapshot(["subworkflow"] * 3)
        assert _advise(snapshot, max_nesting_depth=2) == ["MANY_SUBWORKFLOWS"]
        assert _advise(snapshot, max_nesting_depth=3) == []

    def test_long_execution_time(self):
        snapshot = _snapshot(["set"] * 11)
        assert estimate_runtime(snapshot, _config()) == 660
        assert _advise(snapshot) == ["LONG_EXECUTION_TIME"]

    def test_declared_timeouts_feed_the_estimate(self):
        snapshot = _snapshot(["set"] * 3, {"timeout_seconds": 250})
        assert estimate_runtime(snapshot, _config()) == 750
        resolver = SchemaResolver(default_registry())
        findings = advise_complexity(snapshot, resolver, _config(), 5)
        assert findings[0].message == "Estimated execution time: 12+ minutes"

    def test_advice_never_errors(self):
        snapshot = _snapshot(["openai"] * 12 + ["subworkflow"] * 6)
        resolver = SchemaResolver(default_registry())
        findings = advise_complexity(snapshot, resolver, _config(max_nodes=5), 5)
        assert findings
        assert all(f.severity == Severity.WARNING for f in findings)
