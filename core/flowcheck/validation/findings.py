"""
Findings - the closed taxonomy a validation run reports in.

Every issue a run detects is a Finding: a severity, a stable code from
FindingCode, a message for humans, and an optional node/field locator.
Codes are versioned together with the schema registry (TAXONOMY_VERSION);
adding a code is a minor bump, renaming or removing one is a major bump.

Severity tiers:
- error: blocks save/execute (structural or schema violations)
- warning: does not block (quality and robustness concerns)
- info: neutral facts (empty graph, conditionally reachable nodes)
"""

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, computed_field

TAXONOMY_VERSION = "1.2"


class Severity(StrEnum):
    """How much a finding matters."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FindingCode(StrEnum):
    """Stable finding codes. Never free-form."""

    # Input shape
    INVALID_GRAPH_INPUT = "INVALID_GRAPH_INPUT"
    MALFORMED_NODE = "MALFORMED_NODE"
    MALFORMED_EDGE = "MALFORMED_EDGE"
    DUPLICATE_NODE_ID = "DUPLICATE_NODE_ID"
    DUPLICATE_EDGE_ID = "DUPLICATE_EDGE_ID"
    MISSING_NODE_KIND = "MISSING_NODE_KIND"
    UNKNOWN_EDGE_SOURCE = "UNKNOWN_EDGE_SOURCE"
    UNKNOWN_EDGE_TARGET = "UNKNOWN_EDGE_TARGET"
    EMPTY_WORKFLOW = "EMPTY_WORKFLOW"

    # Structure
    NO_TRIGGER = "NO_TRIGGER"
    MULTIPLE_TRIGGERS = "MULTIPLE_TRIGGERS"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    NODE_IN_CYCLE = "NODE_IN_CYCLE"
    ORPHAN_NODE = "ORPHAN_NODE"
    UNREACHABLE_NODE = "UNREACHABLE_NODE"
    CONDITIONALLY_REACHABLE = "CONDITIONALLY_REACHABLE"

    # Fields and credentials
    INVALID_NODE_SCHEMA = "INVALID_NODE_SCHEMA"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    INVALID_JSON = "INVALID_JSON"
    INVALID_URL = "INVALID_URL"
    INVALID_NUMBER = "INVALID_NUMBER"
    INVALID_TEMPERATURE = "INVALID_TEMPERATURE"
    MISSING_PROMPT = "MISSING_PROMPT"
    MISSING_BODY = "MISSING_BODY"
    MISSING_CODE = "MISSING_CODE"
    MISSING_CRON = "MISSING_CRON"
    MISSING_WORKFLOW_ID = "MISSING_WORKFLOW_ID"
    INVALID_TIMEOUT = "INVALID_TIMEOUT"
    TIMEOUT_EXCEEDS_LIMIT = "TIMEOUT_EXCEEDS_LIMIT"
    REFINEMENT_FAILED = "REFINEMENT_FAILED"

    # Branching
    MISSING_CONDITION = "MISSING_CONDITION"
    NO_CONDITIONAL_OUTPUTS = "NO_CONDITIONAL_OUTPUTS"
    NO_ELSE_PATH = "NO_ELSE_PATH"
    INSUFFICIENT_CASES = "INSUFFICIENT_CASES"
    NO_DEFAULT_CASE = "NO_DEFAULT_CASE"

    # Advisory
    COMPLEX_WORKFLOW = "COMPLEX_WORKFLOW"
    MANY_LLM_NODES = "MANY_LLM_NODES"
    MANY_SUBWORKFLOWS = "MANY_SUBWORKFLOWS"
    LONG_EXECUTION_TIME = "LONG_EXECUTION_TIME"

    # Handles
    INVALID_SOURCE_HANDLE = "INVALID_SOURCE_HANDLE"
    INVALID_TARGET_HANDLE = "INVALID_TARGET_HANDLE"

    # Remote authority
    BACKEND_VALIDATION_UNAVAILABLE = "BACKEND_VALIDATION_UNAVAILABLE"
    SUBWORKFLOW_CYCLE = "SUBWORKFLOW_CYCLE"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    CREDENTIAL_NOT_OWNED = "CREDENTIAL_NOT_OWNED"
    MAX_NESTING_EXCEEDED = "MAX_NESTING_EXCEEDED"
    REMOTE_FINDING = "REMOTE_FINDING"


class Finding(BaseModel):
    """
    One reported issue.

    Serializes to the wire shape {type, code, message, nodeId?, field?}
    via ``to_wire()``; accepts both that shape and snake_case on input.
    """

    severity: Severity = Field(validation_alias=AliasChoices("severity", "type"))
    code: FindingCode
    message: str
    node_id: str | None = Field(default=None, validation_alias=AliasChoices("node_id", "nodeId"))
    field_id: str | None = Field(
        default=None, validation_alias=AliasChoices("field_id", "field", "fieldId")
    )

    model_config = {"frozen": True}

    @classmethod
    def error(cls, code: FindingCode, message: str, **locator: Any) -> "Finding":
        return cls(severity=Severity.ERROR, code=code, message=message, **locator)

    @classmethod
    def warning(cls, code: FindingCode, message: str, **locator: Any) -> "Finding":
        return cls(severity=Severity.WARNING, code=code, message=message, **locator)

    @classmethod
    def info(cls, code: FindingCode, message: str, **locator: Any) -> "Finding":
        return cls(severity=Severity.INFO, code=code, message=message, **locator)

    def to_wire(self) -> dict[str, str]:
        wire = {"type": str(self.severity), "code": str(self.code), "message": self.message}
        if self.node_id is not None:
            wire["nodeId"] = self.node_id
        if self.field_id is not None:
            wire["field"] = self.field_id
        return wire


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


class ValidationResult(BaseModel):
    """Severity-partitioned report of one validation run."""

    errors: list[Finding] = Field(default_factory=list)
    warnings: list[Finding] = Field(default_factory=list)
    info: list[Finding] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @classmethod
    def from_findings(cls, findings: list[Finding]) -> "ValidationResult":
        """Partition findings by severity, keeping producer order within each bucket."""
        result = cls()
        for finding in findings:
            result.by_severity(finding.severity).append(finding)
        return result

    def by_severity(self, severity: Severity | str) -> list[Finding]:
        severity = Severity(severity)
        if severity == Severity.ERROR:
            return self.errors
        if severity == Severity.WARNING:
            return self.warnings
        return self.info

    def all_findings(self) -> list[Finding]:
        return [*self.errors, *self.warnings, *self.info]

    def for_node(self, node_id: str) -> list[Finding]:
        """All findings attached to one node, errors first."""
        return [f for f in self.all_findings() if f.node_id == node_id]

    def has_code(self, code: FindingCode | str) -> bool:
        return any(f.code == code for f in self.all_findings())

    def codes(self) -> list[str]:
        return [str(f.code) for f in self.all_findings()]

    def summary(self) -> str:
        """Short status line for display, e.g. "✅ No errors • ⚠️ 2 warnings"."""
        if self.is_valid and not self.warnings and not self.info:
            return "✅ Workflow is valid"

        parts = []
        if self.errors:
            parts.append(f"❌ {_plural(len(self.errors), 'error')}")
        else:
            parts.append("✅ No errors")
        if self.warnings:
            parts.append(f"⚠️ {_plural(len(self.warnings), 'warning')}")
        if self.info:
            parts.append(f"ℹ️ {len(self.info)} info")
        return " • ".join(parts)

    def to_wire(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [f.to_wire() for f in self.errors],
            "warnings": [f.to_wire() for f in self.warnings],
            "info": [f.to_wire() for f in self.info],
        }
