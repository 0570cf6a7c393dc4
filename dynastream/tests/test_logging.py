"""
Tests for structured logging setup.
"""

import json
import logging

import pytest

from dynastream.logging_config import TraceIDFilter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_format_includes_trace_id(restore_root_logger, capsys):
    setup_logging(level="INFO", log_format="json")

    get_logger("dynastream.test", trace_id="orders/billing").info("claimed entries")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "claimed entries"
    assert record["level"] == "INFO"
    assert record["logger"] == "dynastream.test"
    assert record["trace_id"] == "orders/billing"


def test_text_format_defaults_trace_id(restore_root_logger, capsys):
    setup_logging(level="DEBUG", log_format="text")

    logging.getLogger("dynastream.test").debug("plain record")

    err = capsys.readouterr().err
    assert "plain record" in err
    assert "[trace_id=N/A]" in err


def test_level_from_environment(restore_root_logger, monkeypatch):
    monkeypatch.setenv("DYNASTREAM_LOG_LEVEL", "warning")
    monkeypatch.setenv("DYNASTREAM_LOG_FORMAT", "text")

    setup_logging()

    assert logging.getLogger().level == logging.WARNING


def test_trace_id_filter_keeps_existing_value():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    record.trace_id = "abc"
    assert TraceIDFilter().filter(record)
    assert record.trace_id == "abc"
