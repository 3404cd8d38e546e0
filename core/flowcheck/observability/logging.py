"""
Structured logging with automatic validation-run context propagation.

Analyzers log through plain ``logging.getLogger(__name__)`` loggers. The
validator stores the run identity (``validation_id``, ``run_token``) in a
ContextVar once per run, and both formatters read it back, so no call site
has to pass it along. ContextVars follow ``asyncio.to_thread`` and tasks,
which keeps the local pass and the back end round-trip in one context.

    WorkflowValidator.validate()   -> set_trace_context(validation_id=..., run_token=...)
    RemoteAuthority / analyzers    -> logger.warning("...")  # context attached on output
"""

import json
import logging
import os
import re
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

trace_context: ContextVar[dict[str, Any] | None] = ContextVar("trace_context", default=None)

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

# Record attributes passed through ``extra=`` that end up in JSON output
EXTRA_FIELDS = ("event", "node_id", "code", "latency_ms")

LEVEL_COLORS = {
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[35m",
}
RESET = "\x1b[0m"


def strip_ansi_codes(text: str) -> str:
    return _ANSI.sub("", text)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: base fields, run context, then known extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": strip_ansi_codes(record.getMessage()),
            **(trace_context.get() or {}),
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is None:
                continue
            entry[name] = strip_ansi_codes(value) if isinstance(value, str) else value

        if record.exc_info:
            entry["exception"] = strip_ansi_codes(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Colored level, short run prefix, message, and the event name if any."""

    def _prefix(self) -> str:
        context = trace_context.get() or {}
        parts = []
        if context.get("validation_id"):
            parts.append(f"run:{context['validation_id'][:8]}")
        if context.get("run_token") is not None:
            parts.append(f"token:{context['run_token']}")
        return f"[{' | '.join(parts)}] " if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, "")
        line = f"{color}[{record.levelname:<8}]{RESET} {self._prefix()}{record.getMessage()}"

        event = getattr(record, "event", None)
        if event is not None:
            line += f" [{event}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _resolve_format(format: str) -> str:
    if format != "auto":
        return format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return "json"
    if os.getenv("ENV", "development").lower() == "production":
        return "json"
    return "human"


def configure_logging(level: str = "INFO", format: str = "auto") -> None:
    """
    Install one stream handler on the root logger.

    The CLI calls this at startup. Library users keep their own logging
    setup and simply receive records from the ``flowcheck.*`` loggers.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        format: "json", "human", or "auto" (json when LOG_FORMAT=json or
            ENV=production)
    """
    format = _resolve_format(format)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if format == "json" else HumanReadableFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # httpx logs every request at INFO; keep it quiet unless debugging
    http_level = logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)


def set_trace_context(**kwargs: Any) -> None:
    """Merge fields into the current run context."""
    trace_context.set({**(trace_context.get() or {}), **kwargs})


def get_trace_context() -> dict[str, Any]:
    """Copy of the current run context (empty when unset)."""
    return dict(trace_context.get() or {})


def clear_trace_context() -> None:
    trace_context.set(None)
