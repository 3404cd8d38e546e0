"""Edge endpoints must attach to handles their node kinds actually declare."""

from flowcheck.graph.model import GraphSnapshot
from flowcheck.schema.registry import SchemaResolver
from flowcheck.validation.findings import Finding, FindingCode


def handle_matches(handle: str, declared: tuple[str, ...]) -> bool:
    """
    True if the handle is declared.

    Dynamic handles carry a suffix ("case-3" for a Switch declaring "case"),
    so containment counts as a match.
    """
    return any(handle == handle_id or handle_id in handle for handle_id in declared)


def validate_handles(snapshot: GraphSnapshot, resolver: SchemaResolver) -> list[Finding]:
    """
    Stale handle references are warnings, not errors: the editor can repair
    them on the next save without blocking the user.
    """
    findings = []
    for edge in snapshot.edges:
        source = snapshot.nodes[edge.source]
        target = snapshot.nodes[edge.target]

        if edge.source_handle:
            schema = resolver.resolve(source.kind)
            if schema is not None and schema.outputs is not None:
                if not handle_matches(edge.source_handle, schema.outputs):
                    findings.append(
                        Finding.warning(
                            FindingCode.INVALID_SOURCE_HANDLE,
                            f'Edge from "{source.display_name}" uses non-existent output '
                            f'handle "{edge.source_handle}"',
                            node_id=source.id,
                        )
                    )

        if edge.target_handle:
            schema = resolver.resolve(target.kind)
            if schema is not None and schema.inputs is not None:
                if not handle_matches(edge.target_handle, schema.inputs):
                    findings.append(
                        Finding.warning(
                            FindingCode.INVALID_TARGET_HANDLE,
                            f'Edge to "{target.display_name}" uses non-existent input '
                            f'handle "{edge.target_handle}"',
                            node_id=target.id,
                        )
                    )
    return findings
