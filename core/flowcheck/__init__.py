"""
flowcheck - static validation for visual automation workflows.

Decides whether a node/edge graph built in the editor may be saved or run,
and explains why not:

    from flowcheck import validate_workflow

    result = validate_workflow(nodes, edges)
    print(result.summary())
"""

from flowcheck.config import ValidatorConfig
from flowcheck.graph import GraphEdge, GraphNode, GraphSnapshot
from flowcheck.schema import (
    FieldSpec,
    KindCategory,
    NodeKindSchema,
    SchemaRegistry,
    ValueKind,
    default_registry,
)
from flowcheck.validation.fields import RefinementRegistry, refinement
from flowcheck.validation.findings import (
    TAXONOMY_VERSION,
    Finding,
    FindingCode,
    Severity,
    ValidationResult,
)
from flowcheck.validation.remote import RemoteAuthority, RemoteChecks, RemoteOutcome
from flowcheck.validation.validator import (
    RunToken,
    ValidationOptions,
    ValidationSession,
    WorkflowValidator,
    validate_workflow,
    validate_workflow_async,
)

__version__ = "0.3.0"

__all__ = [
    # Entry points
    "validate_workflow",
    "validate_workflow_async",
    "WorkflowValidator",
    "ValidationOptions",
    "ValidationSession",
    "RunToken",
    # Report
    "Finding",
    "FindingCode",
    "Severity",
    "ValidationResult",
    "TAXONOMY_VERSION",
    # Graph
    "GraphNode",
    "GraphEdge",
    "GraphSnapshot",
    # Schemas
    "NodeKindSchema",
    "FieldSpec",
    "KindCategory",
    "ValueKind",
    "SchemaRegistry",
    "default_registry",
    "RefinementRegistry",
    "refinement",
    # Remote authority
    "RemoteAuthority",
    "RemoteChecks",
    "RemoteOutcome",
    # Config
    "ValidatorConfig",
]
