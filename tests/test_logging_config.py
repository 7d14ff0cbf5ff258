"""Tests for CLI logging configuration."""

import json
import logging
import sys

import pytest

from fssclient.logging_config import JSONFormatter, TextFormatter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="fssclient.transport",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="FSS request failed: %s",
        args=("missing",),
        exc_info=None,
    )
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestJSONFormatter:
    def test_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "fssclient.transport"
        assert entry["message"] == "FSS request failed: missing"
        assert "timestamp" in entry
        assert "key" not in entry

    def test_request_extras(self):
        entry = json.loads(JSONFormatter().format(_record(method="GET", key="a.txt", status=404)))
        assert entry["method"] == "GET"
        assert entry["key"] == "a.txt"
        assert entry["status"] == 404

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]


class TestTextFormatter:
    def test_plain(self):
        line = TextFormatter().format(_record())
        assert line.endswith("INFO fssclient.transport: FSS request failed: missing")

    def test_extras_appended(self):
        line = TextFormatter().format(_record(operation="download", key="a.txt"))
        assert line.endswith("missing operation=download key=a.txt")


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json(self):
        configure_logging("debug", "json")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_text_and_unknown_level(self):
        configure_logging("chatty", "text")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)
