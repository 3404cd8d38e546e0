"""Tests for required fields, value shapes, credentials and refinements."""

from flowcheck.graph.model import GraphSnapshot
from flowcheck.schema import (
    FieldSpec,
    NodeKindSchema,
    SchemaRegistry,
    SchemaResolver,
    ValueKind,
    default_registry,
)
from flowcheck.validation.fields import (
    DEFAULT_REFINEMENTS,
    as_number,
    is_expression,
    is_valid_url,
    validate_credentials,
    validate_fields,
)
from flowcheck.validation.findings import Finding, FindingCode, Severity


def _run(kind, config, registry=None, refinements=None):
    snapshot = GraphSnapshot.from_raw([{"id": "n", "kind": kind, "config": config}], [])
    resolver = SchemaResolver(registry or default_registry())
    return validate_fields(snapshot, resolver, refinements)


def _codes(findings):
    return [str(f.code) for f in findings]


class TestValueHelpers:
    def test_as_number(self):
        assert as_number(3) == 3.0
        assert as_number(" 2.5 ") == 2.5
        assert as_number("abc") is None
        assert as_number(True) is None
        assert as_number(None) is None

    def test_is_valid_url(self):
        assert is_valid_url("https://api.example.com/v1")
        assert not is_valid_url("example.com")
        assert not is_valid_url("not a url")
        assert not is_valid_url(42)
        assert not is_valid_url("http://xn--.com")

    def test_is_expression(self):
        assert is_expression("={{ $json.url }}")
        assert is_expression("https://{{ host }}/x")
        assert not is_expression("https://example.com")


class TestRequiredFields:
    def test_missing_required_field(self):
        findings = _run("http_request", {"method": "GET"})
        assert _codes(findings) == ["MISSING_REQUIRED_FIELD"]
        assert findings[0].field_id == "url"
        assert findings[0].node_id == "n"
        assert findings[0].severity == Severity.ERROR

    def test_zero_and_false_count_as_present(self):
        assert _run("delay", {"seconds": 0}) == []

    def test_credential_fields_are_left_to_credential_pass(self):
        assert _run("slack", {"channel": "#ops"}) == []

    def test_unknown_kind_has_no_field_checks(self):
        assert _run("mystery", {}) == []


class TestValueShapes:
    def test_invalid_json(self):
        findings = _run("http_request", {"url": "https://x.io", "headers": "{oops"})
        assert _codes(findings) == ["INVALID_JSON"]
        assert findings[0].field_id == "headers"

    def test_json_objects_are_accepted(self):
        assert _run("http_request", {"url": "https://x.io", "headers": {"a": "b"}}) == []

    def test_invalid_url(self):
        findings = _run("http_request", {"url": "example.com/path"})
        assert _codes(findings) == ["INVALID_URL"]

    def test_bad_international_host_is_invalid_url(self):
        findings = _run("http_request", {"url": "http://xn--.com", "method": "GET"})
        assert _codes(findings) == ["INVALID_URL"]

    def test_expressions_are_not_shape_checked(self):
        assert _run("http_request", {"url": "={{ $json.endpoint }}"}) == []

    def test_invalid_number(self):
        findings = _run("delay", {"seconds": "soon"})
        assert _codes(findings) == ["INVALID_NUMBER"]


class TestRefinements:
    def test_llm_requires_prompt(self):
        findings = _run("ollama", {"prompt": "   "})
        assert _codes(findings) == ["MISSING_PROMPT"]

    def test_llm_temperature_range(self):
        findings = _run("ollama", {"prompt": "hi", "temperature": 2.5})
        assert _codes(findings) == ["INVALID_TEMPERATURE"]
        assert _run("ollama", {"prompt": "hi", "temperature": "1.2"}) == []

    def test_post_without_body_warns(self):
        findings = _run("http_request", {"url": "https://x.io", "method": "post"})
        assert _codes(findings) == ["MISSING_BODY"]
        assert findings[0].severity == Severity.WARNING

    def test_get_without_body_is_fine(self):
        assert _run("http_request", {"url": "https://x.io", "method": "GET"}) == []

    def test_code_cron_and_workflow_id(self):
        assert _codes(_run("code", {"code": ""})) == ["MISSING_CODE"]
        assert _codes(_run("schedule_trigger", {})) == ["MISSING_CRON"]
        assert _codes(_run("subworkflow", {})) == ["MISSING_WORKFLOW_ID"]

    def test_refinement_runs_without_schema(self):
        assert _codes(_run("code", {}, registry=SchemaRegistry())) == ["MISSING_CODE"]

    def test_custom_refinement(self):
        registry = SchemaRegistry(
            [NodeKindSchema(kind="sftp", fields=[FieldSpec(id="path", required=True)])]
        )
        refinements = DEFAULT_REFINEMENTS.copy()

        @refinements.register("sftp", owns=("path",))
        def _sftp(node, schema):
            if node.get("path", "").startswith("/"):
                return []
            return [
                Finding.error(FindingCode.MISSING_REQUIRED_FIELD, "absolute path", node_id=node.id)
            ]

        findings = _run("sftp", {"path": "relative"}, registry=registry, refinements=refinements)
        assert [f.message for f in findings] == ["absolute path"]
        assert DEFAULT_REFINEMENTS.for_kind("sftp") == []

    def test_failing_refinement_becomes_a_warning(self):
        refinements = DEFAULT_REFINEMENTS.copy()

        @refinements.register("set")
        def _explode(node, schema):
            raise RuntimeError("boom")

        findings = _run("set", {}, refinements=refinements)
        assert _codes(findings) == ["REFINEMENT_FAILED"]
        assert findings[0].severity == Severity.WARNING


class TestInvalidLookupSchema:
    def test_unreadable_schema_is_reported(self):
        snapshot = GraphSnapshot.from_raw([{"id": "n", "kind": "gate"}], [])
        resolver = SchemaResolver(default_registry(), lambda kind: {"fields": 3})
        findings = validate_fields(snapshot, resolver)
        assert _codes(findings) == ["INVALID_NODE_SCHEMA"]


class TestCredentials:
    def _snapshot(self, config):
        return GraphSnapshot.from_raw([{"id": "n", "kind": "openai", "config": config}], [])

    def test_missing_credential(self):
        findings = validate_credentials(self._snapshot({}), SchemaResolver(default_registry()))
        assert _codes(findings) == ["MISSING_CREDENTIAL"]
        assert findings[0].field_id == "credential"

    def test_present_credential(self):
        snapshot = self._snapshot({"credential": "cred_123"})
        assert validate_credentials(snapshot, SchemaResolver(default_registry())) == []

    def test_password_fields_are_not_credentials(self):
        registry = SchemaRegistry(
            [NodeKindSchema(kind="x", fields=[FieldSpec(id="key", value_kind=ValueKind.PASSWORD)])]
        )
        snapshot = GraphSnapshot.from_raw([{"id": "n", "kind": "x"}], [])
        assert validate_credentials(snapshot, SchemaResolver(registry)) == []
