"""Shared flowcheck configuration utilities.

Centralises reading of ~/.flowcheck/configuration.json so that the library,
the CLI and any editor integration share one set of thresholds.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_MAX_NODES = 50
DEFAULT_MAX_LLM_NODES = 10
DEFAULT_NODE_TIMEOUT = 60
DEFAULT_MAX_TOTAL_TIMEOUT = 600
DEFAULT_MAX_NODE_TIMEOUT = 300
DEFAULT_BACKEND_TIMEOUT = 10.0

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

FLOWCHECK_CONFIG_FILE = Path.home() / ".flowcheck" / "configuration.json"


def get_flowcheck_config(path: Path | None = None) -> dict[str, Any]:
    """Load flowcheck configuration from ~/.flowcheck/configuration.json."""
    config_file = path or FLOWCHECK_CONFIG_FILE
    if not config_file.exists():
        return {}
    try:
        with open(config_file, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _validation_section(path: Path | None = None) -> dict[str, Any]:
    section = get_flowcheck_config(path).get("validation", {})
    return section if isinstance(section, dict) else {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_backend_url() -> str | None:
    """Return the remote authority base URL (FLOWCHECK_BACKEND_URL wins over the file)."""
    env_url = os.environ.get("FLOWCHECK_BACKEND_URL")
    if env_url:
        return env_url
    return _validation_section().get("backend_url")


def _setting(key: str, default: Any) -> Any:
    return _validation_section().get(key, default)


# ---------------------------------------------------------------------------
# ValidatorConfig – thresholds shared by every analyzer
# ---------------------------------------------------------------------------


@dataclass
class ValidatorConfig:
    """Validation thresholds loaded from ~/.flowcheck/configuration.json."""

    max_nodes: int = field(default_factory=lambda: _setting("max_nodes", DEFAULT_MAX_NODES))
    max_llm_nodes: int = field(
        default_factory=lambda: _setting("max_llm_nodes", DEFAULT_MAX_LLM_NODES)
    )
    default_node_timeout: float = field(
        default_factory=lambda: _setting("default_node_timeout", DEFAULT_NODE_TIMEOUT)
    )
    max_total_timeout: float = field(
        default_factory=lambda: _setting("max_total_timeout", DEFAULT_MAX_TOTAL_TIMEOUT)
    )
    max_node_timeout: float = field(
        default_factory=lambda: _setting("max_node_timeout", DEFAULT_MAX_NODE_TIMEOUT)
    )
    backend_url: str | None = field(default_factory=get_backend_url)
    backend_timeout: float = field(
        default_factory=lambda: _setting("backend_timeout", DEFAULT_BACKEND_TIMEOUT)
    )

    @classmethod
    def from_file(cls, path: Path) -> "ValidatorConfig":
        """Build a config from an explicit file, ignoring the user's home config."""
        section = _validation_section(path)
        return cls(
            max_nodes=section.get("max_nodes", DEFAULT_MAX_NODES),
            max_llm_nodes=section.get("max_llm_nodes", DEFAULT_MAX_LLM_NODES),
            default_node_timeout=section.get("default_node_timeout", DEFAULT_NODE_TIMEOUT),
            max_total_timeout=section.get("max_total_timeout", DEFAULT_MAX_TOTAL_TIMEOUT),
            max_node_timeout=section.get("max_node_timeout", DEFAULT_MAX_NODE_TIMEOUT),
            backend_url=os.environ.get("FLOWCHECK_BACKEND_URL") or section.get("backend_url"),
            backend_timeout=section.get("backend_timeout", DEFAULT_BACKEND_TIMEOUT),
        )
