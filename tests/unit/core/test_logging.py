"""Tests for logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from combat_ai.core.config import Settings
from combat_ai.core.logging import (
    add_app_context,
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    unbind_context,
)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults so logger caching does not leak between tests."""
    yield
    clear_context()
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root.removeHandler(handler)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console(self) -> None:
        configure_logging(level="DEBUG")
        assert structlog.is_configured()

    def test_json_with_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "combat.log"
        configure_logging(level="warning", json_format=True, log_file=str(log_file))
        assert structlog.is_configured()
        assert log_file.exists()

    def test_from_settings(self) -> None:
        configure_logging_from_settings(Settings(log_level="ERROR", json_logs=True))
        assert structlog.is_configured()
        assert logging.getLogger().level == logging.ERROR

    def test_transport_loggers_quieted(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

    def test_app_context(self) -> None:
        event = add_app_context(None, "info", {"event": "hello"})
        assert event["app"] == "combat_ai"


class TestContext:
    """Tests for context binding helpers."""

    def test_bind_and_unbind(self) -> None:
        bind_context(encounter="bridge-ambush", round=3)
        assert structlog.contextvars.get_contextvars() == {
            "encounter": "bridge-ambush",
            "round": 3,
        }
        unbind_context("round")
        assert structlog.contextvars.get_contextvars() == {"encounter": "bridge-ambush"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger(self) -> None:
        assert get_logger(__name__) is not None
