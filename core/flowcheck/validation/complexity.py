"""
Complexity and cost advisory, plus per-node timeout limits.

The advisory is heuristic and never blocks: it only produces warnings.
The timeout limits are hard errors, since the runtime rejects them.
"""

from flowcheck.config import ValidatorConfig
from flowcheck.graph.model import GraphNode, GraphSnapshot
from flowcheck.schema.models import KindCategory
from flowcheck.schema.registry import SchemaResolver
from flowcheck.validation.fields import as_number
from flowcheck.validation.findings import Finding, FindingCode

TIMEOUT_KEYS = ("timeout_seconds", "timeout_override")


def declared_timeout(node: GraphNode) -> float | None:
    """First non-empty timeout setting of the node, if it is numeric."""
    for key in TIMEOUT_KEYS:
        value = as_number(node.get(key))
        if value is not None:
            return value
    return None


def validate_timeouts(snapshot: GraphSnapshot, config: ValidatorConfig) -> list[Finding]:
    findings = []
    for node in snapshot.nodes.values():
        timeout = declared_timeout(node)
        if timeout is None:
            continue

        if timeout <= 0:
            findings.append(
                Finding.error(
                    FindingCode.INVALID_TIMEOUT,
                    f'Node "{node.display_name}" timeout must be greater than 0',
                    node_id=node.id,
                    field_id="timeout_seconds",
                )
            )
        elif timeout > config.max_node_timeout:
            findings.append(
                Finding.error(
                    FindingCode.TIMEOUT_EXCEEDS_LIMIT,
                    f'Node "{node.display_name}" timeout exceeds maximum '
                    f"({config.max_node_timeout:g}s)",
                    node_id=node.id,
                    field_id="timeout_seconds",
                )
            )
    return findings


def estimate_runtime(snapshot: GraphSnapshot, config: ValidatorConfig) -> float:
    """Upper bound on run time in seconds: every node running to its timeout."""
    total = 0.0
    for node in snapshot.nodes.values():
        timeout = declared_timeout(node)
        total += timeout if timeout and timeout > 0 else config.default_node_timeout
    return total


def advise_complexity(
    snapshot: GraphSnapshot,
    resolver: SchemaResolver,
    config: ValidatorConfig,
    max_nesting_depth: int,
) -> list[Finding]:
    warnings = []
    nodes = list(snapshot.nodes.values())

    if len(nodes) > config.max_nodes:
        warnings.append(
            Finding.warning(
                FindingCode.COMPLEX_WORKFLOW,
                f"Workflow has {len(nodes)} nodes. "
                "Consider breaking it into smaller workflows.",
            )
        )

    categories = [resolver.category_of(node.kind) for node in nodes]

    llm_count = categories.count(KindCategory.LLM)
    if llm_count > config.max_llm_nodes:
        warnings.append(
            Finding.warning(
                FindingCode.MANY_LLM_NODES,
                f"Workflow has {llm_count} LLM nodes. This may be slow and expensive.",
            )
        )

    subworkflow_count = categories.count(KindCategory.SUBWORKFLOW)
    if subworkflow_count > max_nesting_depth:
        warnings.append(
            Finding.warning(
                FindingCode.MANY_SUBWORKFLOWS,
                f"Workflow has {subworkflow_count} subworkflows. Monitor nesting depth.",
            )
        )

    total = estimate_runtime(snapshot, config)
    if total > config.max_total_timeout:
        warnings.append(
            Finding.warning(
                FindingCode.LONG_EXECUTION_TIME,
                f"Estimated execution time: {round(total / 60)}+ minutes",
            )
        )

    return warnings
