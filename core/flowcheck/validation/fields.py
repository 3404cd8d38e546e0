"""
Field and credential validation.

Each node's configuration is checked against the schema of its kind:

1. Required fields must hold a value (not missing, None or "")
2. Values must have the declared shape (JSON parses, URL is absolute,
   numbers are numbers)
3. Credential fields must reference a credential
4. Kind-specific refinements run on top (see ``refinement``)

Refinements are registered per kind, so a new node kind brings its own
checks without touching this module:

    @refinement("sftp_upload", owns=("remote_path",))
    def _sftp(node, schema):
        ...

A refinement that ``owns`` a field replaces the generic
MISSING_REQUIRED_FIELD for it with its own, more specific finding.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from flowcheck.graph.model import GraphNode, GraphSnapshot
from flowcheck.schema.builtin import LLM_KINDS
from flowcheck.schema.models import FieldSpec, NodeKindSchema, ValueKind
from flowcheck.schema.registry import SchemaResolver
from flowcheck.validation.findings import Finding, FindingCode

logger = logging.getLogger(__name__)

RefinementFn = Callable[[GraphNode, NodeKindSchema | None], list[Finding]]

MUTATING_METHODS = {"POST", "PUT", "PATCH"}
DEFAULT_TEMPERATURE_RANGE = (0.0, 2.0)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def is_missing(value: Any) -> bool:
    """Missing for the purpose of a required field: absent, None or ""."""
    return value is None or value == ""


def is_blank(value: Any) -> bool:
    """Missing, or a string holding only whitespace."""
    return is_missing(value) or (isinstance(value, str) and not value.strip())


def is_expression(value: Any) -> bool:
    """Values resolved at run time ("={{ ... }}") cannot be checked statically."""
    return isinstance(value, str) and (value.startswith("=") or "{{" in value)


def as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        url = httpx.URL(value.strip())
        return bool(url.scheme) and bool(url.host)
    except (httpx.InvalidURL, UnicodeError):
        # Hosts go through IDNA encoding, which raises its own UnicodeError subclass
        return False


# ---------------------------------------------------------------------------
# Refinement registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Refinement:
    func: RefinementFn
    owns: frozenset[str]


class RefinementRegistry:
    """Kind string -> checks that go beyond the generic schema."""

    def __init__(self) -> None:
        self._by_kind: dict[str, list[Refinement]] = defaultdict(list)

    def register(
        self, *kinds: str, owns: tuple[str, ...] = ()
    ) -> Callable[[RefinementFn], RefinementFn]:
        def decorator(func: RefinementFn) -> RefinementFn:
            entry = Refinement(func=func, owns=frozenset(owns))
            for kind in kinds:
                self._by_kind[kind].append(entry)
            return func

        return decorator

    def for_kind(self, kind: str) -> list[Refinement]:
        return list(self._by_kind.get(kind, []))

    def owned_fields(self, kind: str) -> set[str]:
        owned: set[str] = set()
        for entry in self._by_kind.get(kind, []):
            owned |= entry.owns
        return owned

    def copy(self) -> RefinementRegistry:
        clone = RefinementRegistry()
        for kind, entries in self._by_kind.items():
            clone._by_kind[kind] = list(entries)
        return clone


DEFAULT_REFINEMENTS = RefinementRegistry()
refinement = DEFAULT_REFINEMENTS.register


# ---------------------------------------------------------------------------
# Built-in refinements
# ---------------------------------------------------------------------------


@refinement(*LLM_KINDS, owns=("prompt",))
def _llm_node(node: GraphNode, schema: NodeKindSchema | None) -> list[Finding]:
    findings = []
    if is_blank(node.get("prompt")):
        findings.append(
            Finding.error(
                FindingCode.MISSING_PROMPT,
                f'LLM node "{node.display_name}" requires a prompt',
                node_id=node.id,
                field_id="prompt",
            )
        )

    temperature = as_number(node.get("temperature"))
    if temperature is not None:
        low, high = DEFAULT_TEMPERATURE_RANGE
        spec = schema.get_field("temperature") if schema else None
        if spec is not None:
            low = spec.minimum if spec.minimum is not None else low
            high = spec.maximum if spec.maximum is not None else high
        if not low <= temperature <= high:
            findings.append(
                Finding.error(
                    FindingCode.INVALID_TEMPERATURE,
                    f'LLM node "{node.display_name}" temperature must be between '
                    f"{low:g} and {high:g}",
                    node_id=node.id,
                    field_id="temperature",
                )
            )
    return findings


@refinement("http_request")
def _http_request(node: GraphNode, schema: NodeKindSchema | None) -> list[Finding]:
    method = node.get("method")
    if not isinstance(method, str) or method.upper() not in MUTATING_METHODS:
        return []
    if not is_blank(node.get("body")):
        return []
    return [
        Finding.warning(
            FindingCode.MISSING_BODY,
            f'HTTP {method.upper()} node "{node.display_name}" usually requires a body',
            node_id=node.id,
            field_id="body",
        )
    ]


@refinement("code", owns=("code",))
def _code(node: GraphNode, schema: NodeKindSchema | None) -> list[Finding]:
    if not is_blank(node.get("code")):
        return []
    return [
        Finding.error(
            FindingCode.MISSING_CODE,
            f'Code node "{node.display_name}" requires code',
            node_id=node.id,
            field_id="code",
        )
    ]


@refinement("schedule_trigger", owns=("cron_expression",))
def _schedule_trigger(node: GraphNode, schema: NodeKindSchema | None) -> list[Finding]:
    if not is_blank(node.get("cron_expression")):
        return []
    return [
        Finding.error(
            FindingCode.MISSING_CRON,
            f'Schedule trigger "{node.display_name}" requires cron expression',
            node_id=node.id,
            field_id="cron_expression",
        )
    ]


@refinement("subworkflow", owns=("workflow_id",))
def _subworkflow(node: GraphNode, schema: NodeKindSchema | None) -> list[Finding]:
    if not is_blank(node.get("workflow_id")):
        return []
    return [
        Finding.error(
            FindingCode.MISSING_WORKFLOW_ID,
            f'Subworkflow node "{node.display_name}" must reference a workflow',
            node_id=node.id,
            field_id="workflow_id",
        )
    ]


# ---------------------------------------------------------------------------
# Generic checks
# ---------------------------------------------------------------------------


def _check_required(node: GraphNode, schema: NodeKindSchema, owned: set[str]) -> list[Finding]:
    findings = []
    for spec in schema.required_fields():
        # Credentials have their own pass, gated by check_credentials
        if spec.id in owned or spec.holds_credential:
            continue
        if is_missing(node.get(spec.id)):
            findings.append(
                Finding.error(
                    FindingCode.MISSING_REQUIRED_FIELD,
                    f'Node "{node.display_name}" is missing required field '
                    f'"{spec.display_label}"',
                    node_id=node.id,
                    field_id=spec.id,
                )
            )
    return findings


def _check_shape(node: GraphNode, spec: FieldSpec) -> Finding | None:
    value = node.get(spec.id)
    if is_blank(value) or is_expression(value):
        return None

    if spec.value_kind == ValueKind.JSON and isinstance(value, str):
        try:
            json.loads(value)
        except json.JSONDecodeError:
            return Finding.error(
                FindingCode.INVALID_JSON,
                f'Node "{node.display_name}" has invalid {spec.id} JSON',
                node_id=node.id,
                field_id=spec.id,
            )

    if spec.value_kind == ValueKind.URL and not is_valid_url(value):
        return Finding.error(
            FindingCode.INVALID_URL,
            f'Node "{node.display_name}" has invalid URL format in "{spec.display_label}"',
            node_id=node.id,
            field_id=spec.id,
        )

    if spec.value_kind == ValueKind.NUMBER and as_number(value) is None:
        return Finding.error(
            FindingCode.INVALID_NUMBER,
            f'Node "{node.display_name}" field "{spec.display_label}" must be a number',
            node_id=node.id,
            field_id=spec.id,
        )
    return None


def _run_refinements(
    node: GraphNode, schema: NodeKindSchema | None, refinements: RefinementRegistry
) -> list[Finding]:
    findings: list[Finding] = []
    for entry in refinements.for_kind(node.kind):
        try:
            findings.extend(entry.func(node, schema))
        except Exception as e:
            logger.warning(
                f"Refinement {entry.func.__name__} failed on node '{node.id}': {e}",
                extra={"node_id": node.id},
            )
            findings.append(
                Finding.warning(
                    FindingCode.REFINEMENT_FAILED,
                    f'Could not fully validate node "{node.display_name}"',
                    node_id=node.id,
                )
            )
    return findings


def validate_fields(
    snapshot: GraphSnapshot,
    resolver: SchemaResolver,
    refinements: RefinementRegistry | None = None,
) -> list[Finding]:
    """Required fields, value shapes and kind refinements for every node."""
    refinements = refinements or DEFAULT_REFINEMENTS
    findings: list[Finding] = []

    for node in snapshot.nodes.values():
        if not node.kind:
            continue

        schema = resolver.resolve(node.kind)
        if schema is None and node.kind in resolver.invalid_kinds():
            findings.append(
                Finding.warning(
                    FindingCode.INVALID_NODE_SCHEMA,
                    f'Schema for node type "{node.kind}" could not be read; '
                    f'fields of "{node.display_name}" were not checked',
                    node_id=node.id,
                )
            )

        if schema is not None:
            findings.extend(_check_required(node, schema, refinements.owned_fields(node.kind)))
            for spec in schema.fields:
                finding = _check_shape(node, spec)
                if finding is not None:
                    findings.append(finding)

        findings.extend(_run_refinements(node, schema, refinements))

    return findings


def validate_credentials(snapshot: GraphSnapshot, resolver: SchemaResolver) -> list[Finding]:
    """Every credential field of every node must reference a credential."""
    findings = []
    for node in snapshot.nodes.values():
        schema = resolver.resolve(node.kind)
        if schema is None:
            continue
        for spec in schema.credential_fields():
            if is_blank(node.get(spec.id)):
                findings.append(
                    Finding.error(
                        FindingCode.MISSING_CREDENTIAL,
                        f'Node "{node.display_name}" requires a credential',
                        node_id=node.id,
                        field_id=spec.id,
                    )
                )
    return findings
