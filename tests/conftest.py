"""
Shared pytest fixtures for udu-logging tests.

This module provides:
- Environment isolation (no LOG_LEVEL / THIS_POD_NAME leaking in from the shell)
- A fresh process-wide router for every test
- Memory sink and router fixtures with a fixed hostname
"""

from pathlib import Path

import pytest
import structlog

import udu_logging.config as logging_config
from udu_logging import LogRouter, MemorySink, reset_router

ENV_VARS = (
    "LOG_LEVEL",
    "LOG_FORMAT",
    "DISPLAY_META",
    "DISPLAY_TIMESTAMP",
    "EXPORT_LOGS",
    "EXPORT_LOGS_TO_LOGSENE",
    "LOGSENE_TOKEN",
    "LOGSENE_URL",
    "LOGSENE_TYPE",
    "THIS_POD_NAME",
    "THIS_CODE_REPOSITORY",
)

TEST_HOST = "test-host"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.path).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Strip logging env vars, avoid stray .env files, reset structlog and the shared router."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logging_config, "_configured", False)
    structlog.reset_defaults()
    reset_router()
    yield
    reset_router()
    structlog.reset_defaults()


# =============================================================================
# Sink / Router Fixtures
# =============================================================================


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def router(memory_sink) -> LogRouter:
    """Router writing to ``memory_sink`` with hostname ``test-host``."""
    return LogRouter(memory_sink, global_meta={"hostname": TEST_HOST})
