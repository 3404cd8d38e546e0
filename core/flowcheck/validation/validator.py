"""
Workflow validation - the save/execute gate of the editor.

WorkflowValidator runs every analyzer over one adapted snapshot and merges
their findings into a severity-partitioned ValidationResult. The contract
is "always returns a report": malformed input, broken schemas and an
unreachable back end all become findings, never exceptions.

Findings keep producer order within each severity bucket:

    input shape -> adapter -> triggers -> cycles -> reachability -> orphans
    -> fields -> credentials -> branches -> timeouts -> complexity
    -> handles -> remote authority

Usage:
    result = validate_workflow(nodes, edges)
    if not result.is_valid:
        show(result.errors)

    # Editor integration: last request wins
    session = ValidationSession()
    result = await session.run(nodes, edges, ValidationOptions(validate_with_backend=True))
    if result is None:
        pass  # a newer run was started meanwhile; drop this one
"""

import asyncio
import itertools
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from flowcheck.config import ValidatorConfig
from flowcheck.graph.cycles import cycle_findings, detect_cycle
from flowcheck.graph.model import GraphSnapshot
from flowcheck.graph.reachability import (
    analyze_reachability,
    find_orphans,
    orphan_findings,
    reachability_findings,
    trigger_findings,
)
from flowcheck.observability import set_trace_context
from flowcheck.schema import SchemaLookup, SchemaRegistry, SchemaResolver, default_registry
from flowcheck.validation.branches import validate_branches
from flowcheck.validation.complexity import advise_complexity, validate_timeouts
from flowcheck.validation.fields import (
    DEFAULT_REFINEMENTS,
    RefinementRegistry,
    validate_credentials,
    validate_fields,
)
from flowcheck.validation.findings import Finding, FindingCode, ValidationResult
from flowcheck.validation.handles import validate_handles
from flowcheck.validation.remote import RemoteAuthority, RemoteChecks, RemoteOutcome

logger = logging.getLogger(__name__)

DEFAULT_MAX_NESTING_DEPTH = 5


@dataclass
class ValidationOptions:
    """Per-run switches supplied by the caller."""

    schema_lookup: SchemaLookup | None = None
    check_credentials: bool = True
    check_type_compatibility: bool = True
    check_subworkflow_cycles: bool = True
    validate_with_backend: bool = False
    ignore_error_handles: bool = False
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH

    def remote_checks(self) -> RemoteChecks:
        return RemoteChecks(
            check_credentials=self.check_credentials,
            check_types=self.check_type_compatibility,
            check_subworkflow_cycles=self.check_subworkflow_cycles,
        )


@dataclass(frozen=True, order=True)
class RunToken:
    """Identifies one validation run; larger values are newer."""

    value: int


def _check_input(nodes: Any, edges: Any) -> list[Finding]:
    bad = [
        name
        for name, value in (("nodes", nodes), ("edges", edges))
        if not isinstance(value, list | tuple)
    ]
    if not bad:
        return []
    return [
        Finding.error(
            FindingCode.INVALID_GRAPH_INPUT,
            f"Workflow {' and '.join(bad)} must be a list; nothing else was validated",
        )
    ]


class WorkflowValidator:
    """
    Runs the full validation pass.

    Args:
        registry: Node kind schemas (defaults to the built-in palette)
        config: Thresholds (defaults to ~/.flowcheck/configuration.json)
        refinements: Kind-specific field checks (defaults to the built-ins)
        remote: Back end client; built from config.backend_url when omitted
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        config: ValidatorConfig | None = None,
        refinements: RefinementRegistry | None = None,
        remote: RemoteAuthority | None = None,
    ):
        self.registry = registry or default_registry()
        self.config = config or ValidatorConfig()
        self.refinements = refinements or DEFAULT_REFINEMENTS
        self.remote = remote

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def validate(
        self,
        nodes: Any,
        edges: Any,
        options: ValidationOptions | None = None,
        token: RunToken | None = None,
    ) -> ValidationResult:
        options = options or ValidationOptions()
        self._start_run(token)

        early = self._early_result(nodes, edges)
        if isinstance(early, ValidationResult):
            return early
        snapshot = early

        findings = self._local_findings(snapshot, options)
        if options.validate_with_backend:
            findings.extend(self._remote_outcome_sync(snapshot, options).findings())
        return self._finish(findings)

    async def validate_async(
        self,
        nodes: Any,
        edges: Any,
        options: ValidationOptions | None = None,
        token: RunToken | None = None,
    ) -> ValidationResult:
        """
        Same report as validate(); the back end round-trip runs concurrently
        with the local pass and is joined only when merging.
        """
        options = options or ValidationOptions()
        self._start_run(token)

        early = self._early_result(nodes, edges)
        if isinstance(early, ValidationResult):
            return early
        snapshot = early

        remote_task = None
        if options.validate_with_backend:
            remote_task = asyncio.create_task(self._remote_outcome(snapshot, options))

        findings = await asyncio.to_thread(self._local_findings, snapshot, options)
        if remote_task is not None:
            outcome = await remote_task
            findings.extend(outcome.findings())
        return self._finish(findings)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _early_result(self, nodes: Any, edges: Any) -> ValidationResult | GraphSnapshot:
        """Return a finished result for bad or empty input, else the snapshot."""
        input_findings = _check_input(nodes, edges)
        if input_findings:
            logger.warning("Rejected malformed workflow input")
            return ValidationResult.from_findings(input_findings)

        snapshot = GraphSnapshot.from_raw(nodes, edges)
        if snapshot.is_empty():
            findings = [
                *snapshot.findings,
                Finding.info(
                    FindingCode.EMPTY_WORKFLOW,
                    "Workflow is empty. Add some nodes to get started.",
                ),
            ]
            return ValidationResult.from_findings(findings)
        return snapshot

    def _local_findings(
        self, snapshot: GraphSnapshot, options: ValidationOptions
    ) -> list[Finding]:
        resolver = SchemaResolver(self.registry, options.schema_lookup)
        findings = list(snapshot.findings)

        findings.extend(trigger_findings(snapshot, resolver))

        cycle = detect_cycle(snapshot, ignore_error_handles=options.ignore_error_handles)
        findings.extend(cycle_findings(cycle, snapshot))

        reachability = analyze_reachability(snapshot, resolver)
        orphans = find_orphans(snapshot, resolver)
        findings.extend(reachability_findings(reachability, snapshot, orphans))
        findings.extend(orphan_findings(orphans, snapshot))

        findings.extend(validate_fields(snapshot, resolver, self.refinements))
        if options.check_credentials:
            findings.extend(validate_credentials(snapshot, resolver))

        findings.extend(validate_branches(snapshot))
        findings.extend(validate_timeouts(snapshot, self.config))
        findings.extend(
            advise_complexity(snapshot, resolver, self.config, options.max_nesting_depth)
        )
        findings.extend(validate_handles(snapshot, resolver))
        return findings

    async def _remote_outcome(
        self, snapshot: GraphSnapshot, options: ValidationOptions
    ) -> RemoteOutcome:
        authority = self.remote
        if authority is None and self.config.backend_url:
            authority = RemoteAuthority(
                self.config.backend_url, timeout=self.config.backend_timeout
            )
        if authority is None:
            logger.warning("Backend validation requested but no backend_url is configured")
            return RemoteOutcome.unavailable("no backend configured")
        return await authority.validate(snapshot, options.remote_checks())

    def _remote_outcome_sync(
        self, snapshot: GraphSnapshot, options: ValidationOptions
    ) -> RemoteOutcome:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._remote_outcome(snapshot, options))

        logger.warning(
            "validate() called from a running event loop; use validate_async() "
            "for backend validation"
        )
        return RemoteOutcome.unavailable("event loop already running")

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _start_run(self, token: RunToken | None) -> None:
        set_trace_context(
            validation_id=uuid.uuid4().hex,
            run_token=token.value if token is not None else None,
        )

    def _finish(self, findings: list[Finding]) -> ValidationResult:
        result = ValidationResult.from_findings(findings)
        logger.info(
            f"Validation finished: {result.summary()}",
            extra={"event": "validation_complete"},
        )
        return result


class ValidationSession:
    """
    Last-request-wins wrapper for an editor that re-validates on every change.

    Each run gets a fresh RunToken. When a run completes after a newer one
    was issued, its result is discarded (``run`` returns None) so a slow
    back end answer can never overwrite a fresher report.
    """

    def __init__(self, validator: WorkflowValidator | None = None):
        self.validator = validator or WorkflowValidator()
        self._counter = itertools.count(1)
        self._latest: RunToken | None = None

    @property
    def latest(self) -> RunToken | None:
        return self._latest

    def issue(self) -> RunToken:
        self._latest = RunToken(next(self._counter))
        return self._latest

    def is_current(self, token: RunToken) -> bool:
        return token == self._latest

    def accept(self, token: RunToken, result: ValidationResult) -> ValidationResult | None:
        if not self.is_current(token):
            logger.debug(
                f"Discarding stale validation result (token {token.value}, "
                f"latest {self._latest.value if self._latest else None})"
            )
            return None
        return result

    async def run(
        self,
        nodes: Any,
        edges: Any,
        options: ValidationOptions | None = None,
    ) -> ValidationResult | None:
        token = self.issue()
        result = await self.validator.validate_async(nodes, edges, options, token=token)
        return self.accept(token, result)


def validate_workflow(
    nodes: Any, edges: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    """Validate a workflow with the built-in schemas and the user's config."""
    return WorkflowValidator().validate(nodes, edges, options)


async def validate_workflow_async(
    nodes: Any, edges: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    return await WorkflowValidator().validate_async(nodes, edges, options)
