"""Tests for structured logging setup."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest
import structlog
from structlog.testing import LogCapture

from rpg_engine.core.logging import (
    add_app_context,
    bind_context,
    clear_context,
    configure_logging,
    drop_unset_fields,
    get_logger,
)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults around each test."""
    structlog.reset_defaults()
    yield
    clear_context()
    structlog.reset_defaults()


class TestProcessors:
    """Tests for the custom processors."""

    def test_drop_unset_fields(self) -> None:
        """Test None values are removed and falsy values kept."""
        event = {"event": "Turn processed", "check": None, "rejected": 0, "combat": False}

        assert drop_unset_fields(None, "info", event) == {
            "event": "Turn processed",
            "rejected": 0,
            "combat": False,
        }

    def test_add_app_context(self) -> None:
        """Test the app name and version are added."""
        event = add_app_context(None, "info", {"event": "x"})

        assert event["app"] == "rpg_engine"
        assert event["version"] == "0.1.0"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_level_from_argument(self) -> None:
        """Test an explicit level configures the stdlib root logger."""
        configure_logging(level="debug", json_format=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_level_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the configured log level is used by default."""
        from rpg_engine.core.config import clear_settings_cache

        monkeypatch.setenv("RPG_ENGINE_LOG_LEVEL", "WARNING")
        clear_settings_cache()

        configure_logging(json_format=False)

        assert logging.getLogger().level == logging.WARNING

    def test_bound_context_reaches_events(self) -> None:
        """Test context bound for a turn appears on logged events."""
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        bind_context(save_id="save-1")

        get_logger("test").info("Attack resolved", hit=True)

        logs = capture.entries
        assert logs[0]["save_id"] == "save-1"
        assert logs[0]["hit"] is True
