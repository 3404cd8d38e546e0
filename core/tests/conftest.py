"""Shared fixtures: keep every test away from the user's real configuration."""

import pytest

from flowcheck import config as flowcheck_config
from flowcheck.observability import clear_trace_context


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at an empty temp location and drop env overrides."""
    config_file = tmp_path / "home" / ".flowcheck" / "configuration.json"
    monkeypatch.setattr(flowcheck_config, "FLOWCHECK_CONFIG_FILE", config_file)
    monkeypatch.delenv("FLOWCHECK_BACKEND_URL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("ENV", raising=False)
    yield config_file
    clear_trace_context()
