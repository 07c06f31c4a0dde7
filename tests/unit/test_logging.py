"""
Unit tests for logging configuration.
"""

import json
import logging

import pytest
import structlog

from agent_miyabi.utils.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    """Test structlog configuration."""

    def test_sets_root_level(self):
        configure_logging("warning")

        assert logging.getLogger().level == logging.WARNING

    def test_reconfigure_replaces_level(self):
        configure_logging("DEBUG")
        configure_logging("ERROR")

        assert logging.getLogger().level == logging.ERROR

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level: verbose"):
            configure_logging("verbose")

    def test_json_output(self, capsys):
        configure_logging("INFO", json_format=True)

        get_logger("agent_miyabi.test").info("agent_ready", agent_name="AI Bookkeeper")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "agent_ready"
        assert record["agent_name"] == "AI Bookkeeper"
        assert record["level"] == "info"
        assert record["logger"] == "agent_miyabi.test"

    def test_level_filters_debug(self, capsys):
        configure_logging("INFO", json_format=True)

        get_logger("agent_miyabi.test").debug("hidden")

        assert "hidden" not in capsys.readouterr().out
