"""Unit tests for credit_threads logging setup."""

import logging

import pytest
import structlog

from credit_threads.config import LoggingSettings
from credit_threads.logging import bind_conversation, configure_logging


class TestBindConversation:
    """Tests for conversation-scoped log context."""

    def test_binds_inside_block_only(self) -> None:
        with bind_conversation("conv-1", operation="read"):
            bound = structlog.contextvars.get_contextvars()

        assert bound["conversation_id"] == "conv-1"
        assert bound["operation"] == "read"
        assert "conversation_id" not in structlog.contextvars.get_contextvars()

    def test_unbinds_on_error(self) -> None:
        with pytest.raises(KeyError):
            with bind_conversation("conv-1"):
                raise KeyError("boom")

        assert "conversation_id" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_level_names_and_driver_loggers(self) -> None:
        try:
            configure_logging(level="error")
            assert logging.getLogger("pymongo").level == logging.ERROR

            configure_logging(level="debug")
            assert logging.getLogger("motor").level == logging.WARNING
            assert logging.getLogger("redis").level == logging.WARNING
        finally:
            configure_logging()

    def test_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CREDIT_THREADS_LOGGING_LEVEL", "DEBUG")
        monkeypatch.setenv("CREDIT_THREADS_LOGGING_JSON_OUTPUT", "true")

        settings = LoggingSettings()

        assert settings.level == "DEBUG"
        assert settings.json_output is True
