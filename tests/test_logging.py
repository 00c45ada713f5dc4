"""
Tests for the logging configuration.

Tests verify:
- JSON lines carry level, logger name and UTC timestamp
- Bound session context appears on every event
- DEBUG logs are suppressed at INFO level
"""

import json
import logging

import pytest
import structlog

from news_spine.logging_config import configure_logging, reset_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    reset_logging()
    yield
    structlog.contextvars.clear_contextvars()
    reset_logging()
    logging.getLogger().handlers.clear()


def json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.startswith("{")]


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", format="json", force=True)

        structlog.get_logger("news_spine.test").info("sync_started", provider="guardian")

        (event,) = json_lines(capsys.readouterr().err)
        assert event["event"] == "sync_started"
        assert event["provider"] == "guardian"
        assert event["level"] == "info"
        assert event["logger"] == "news_spine.test"
        assert event["timestamp"].endswith("Z")

    def test_debug_suppressed_at_info(self, capsys):
        configure_logging(level="INFO", format="json", force=True)
        log = structlog.get_logger("news_spine.test")

        log.debug("noisy")
        log.warning("loud")

        events = [e["event"] for e in json_lines(capsys.readouterr().err)]
        assert events == ["loud"]

    def test_session_context_is_merged(self, capsys):
        configure_logging(level="INFO", format="json", force=True)
        structlog.contextvars.bind_contextvars(session_id="abc-123")

        structlog.get_logger("news_spine.test").info("page_fetched", page=1)

        (event,) = json_lines(capsys.readouterr().err)
        assert event["session_id"] == "abc-123"

    def test_second_call_is_noop_without_force(self, capsys):
        configure_logging(level="INFO", format="json", force=True)
        configure_logging(level="DEBUG", format="json")

        structlog.get_logger("news_spine.test").debug("still_hidden")

        assert json_lines(capsys.readouterr().err) == []

    def test_console_format(self, capsys):
        configure_logging(level="INFO", format="console", force=True)

        structlog.get_logger("news_spine.test").info("console_event", batch=2)

        err = capsys.readouterr().err
        assert "console_event" in err
        assert "batch" in err

    def test_httpx_is_quieted(self):
        configure_logging(level="DEBUG", format="json", force=True)
        assert logging.getLogger("httpx").level == logging.WARNING
