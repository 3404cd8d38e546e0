"""
Validation passes over a graph snapshot.

Only the finding taxonomy is re-exported here; the graph layer imports it,
so pulling the analyzers in at package import time would be circular. The
public entry points live on the top-level ``flowcheck`` package.
"""

from flowcheck.validation.findings import (
    TAXONOMY_VERSION,
    Finding,
    FindingCode,
    Severity,
    ValidationResult,
)

__all__ = [
    "TAXONOMY_VERSION",
    "Finding",
    "FindingCode",
    "Severity",
    "ValidationResult",
]
