"""
Observability module for run-context correlation and structured logging.

- Automatic run context propagation via ContextVar
- Structured JSON logging for services
- Human-readable logging for the command line
"""

from flowcheck.observability.logging import (
    clear_trace_context,
    configure_logging,
    get_trace_context,
    set_trace_context,
)

__all__ = [
    "configure_logging",
    "get_trace_context",
    "set_trace_context",
    "clear_trace_context",
]
