"""
Command-line interface for flowcheck.

Usage:
    flowcheck validate workflow.json
    flowcheck validate workflow.json --json
    flowcheck validate workflow.json --backend https://api.example.com
    flowcheck validate workflow.json --ignore-error-handles --no-credentials

Exit codes:
    0  workflow is valid (warnings and info allowed)
    1  workflow has at least one error
    2  the file could not be read or is not a workflow document
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from flowcheck.config import ValidatorConfig
from flowcheck.observability import configure_logging
from flowcheck.validation.findings import Finding, ValidationResult
from flowcheck.validation.validator import ValidationOptions, WorkflowValidator

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_UNREADABLE = 2

SEVERITY_ICONS = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}


def load_workflow(path: Path) -> tuple[Any, Any]:
    """
    Read a saved workflow document.

    Accepts ``{"nodes": [...], "edges": [...]}`` at the top level or under a
    ``"workflow"`` key, as exported by the editor.

    Raises:
        OSError: The file cannot be read
        ValueError: The file is not JSON or not a workflow document
    """
    with open(path, encoding="utf-8-sig") as f:
        document = json.load(f)

    if isinstance(document, dict) and isinstance(document.get("workflow"), dict):
        document = document["workflow"]
    if not isinstance(document, dict) or "nodes" not in document:
        raise ValueError("expected an object with 'nodes' and 'edges'")
    return document.get("nodes"), document.get("edges", [])


def _format_finding(finding: Finding) -> str:
    icon = SEVERITY_ICONS.get(str(finding.severity), "-")
    locator = ""
    if finding.node_id:
        locator = f" (node {finding.node_id}"
        locator += f", field {finding.field_id})" if finding.field_id else ")"
    return f"  {icon} {finding.code}: {finding.message}{locator}"


def render_text(result: ValidationResult) -> str:
    lines = [result.summary()]
    for finding in result.all_findings():
        lines.append(_format_finding(finding))
    return "\n".join(lines)


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate one workflow file and print the report."""
    try:
        nodes, edges = load_workflow(Path(args.workflow))
    except (OSError, ValueError) as e:
        print(f"Error: cannot read workflow {args.workflow}: {e}", file=sys.stderr)
        return EXIT_UNREADABLE

    config = ValidatorConfig.from_file(Path(args.config)) if args.config else ValidatorConfig()
    if args.backend:
        config = replace(config, backend_url=args.backend)

    options = ValidationOptions(
        check_credentials=not args.no_credentials,
        validate_with_backend=bool(args.backend),
        ignore_error_handles=args.ignore_error_handles,
    )
    result = WorkflowValidator(config=config).validate(nodes, edges, options)

    if args.json:
        print(json.dumps(result.to_wire(), indent=2, ensure_ascii=False))
    else:
        print(render_text(result))

    return EXIT_VALID if result.is_valid else EXIT_INVALID


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a workflow file",
        description="Check a saved workflow for structural and configuration problems.",
    )
    validate_parser.add_argument("workflow", help="Path to a workflow JSON file")
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON instead of text",
    )
    validate_parser.add_argument(
        "--backend",
        metavar="URL",
        help="Also run server-side checks against this back end",
    )
    validate_parser.add_argument(
        "--config",
        metavar="PATH",
        help="Read thresholds from this file instead of ~/.flowcheck/configuration.json",
    )
    validate_parser.add_argument(
        "--ignore-error-handles",
        action="store_true",
        help="Allow error-handling edges to point back upstream",
    )
    validate_parser.add_argument(
        "--no-credentials",
        action="store_true",
        help="Skip credential checks",
    )
    validate_parser.set_defaults(func=cmd_validate)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowcheck",
        description="flowcheck - Validate visual automation workflows",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    register_commands(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    if hasattr(args, "func"):
        sys.exit(args.func(args))


if __name__ == "__main__":
    main()
