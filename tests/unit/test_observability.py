"""Unit tests for observability module."""

import json
import logging
import sys

import pytest

from hugo_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    configure_logging,
    get_metrics,
    get_metrics_content_type,
    get_request_context,
    request_context,
    set_request_context,
    track_latency,
)


def _record(msg: str = "test message", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="hugo_search.search.index",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_basic_fields(self):
        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "hugo_search.search.index"
        assert data["component"] == "index"
        assert "timestamp" in data
        assert "msg" not in data
        assert "args" not in data

    def test_format_includes_request_context(self):
        token = set_request_context("req-1", index="search")
        try:
            data = json.loads(JsonFormatter().format(_record()))
        finally:
            request_context.reset(token)

        assert data["request_id"] == "req-1"
        assert data["index"] == "search"

    def test_format_includes_extra_fields(self):
        record = _record()
        record.documents = 42
        data = json.loads(JsonFormatter().format(record))

        assert data["documents"] == 42

    def test_format_truncates_and_redacts(self):
        record = _record("x" * 5000)
        record.api_key = "secret"
        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["api_key"] == "[REDACTED]"

    def test_format_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("t", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())
        data = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]

    def test_json_default_handles_set_and_bytes(self):
        formatter = JsonFormatter()
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"


@pytest.mark.unit
class TestRequestContext:
    def test_empty_outside_request(self):
        assert get_request_context() == {}

    def test_set_and_reset(self):
        token = set_request_context("abc", index="blog")
        assert get_request_context() == {"request_id": "abc", "index": "blog"}
        request_context.reset(token)
        assert get_request_context() == {}


@pytest.mark.unit
class TestConfigureLogging:
    def test_installs_single_json_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="DEBUG", json_output=True, logger_levels={"noisy": "error"})

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert logging.getLogger("uvicorn.access").level == logging.WARNING
            assert logging.getLogger("noisy").level == logging.ERROR
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_access_log_enabled(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="INFO", json_output=False, access_log=True)

            assert logging.getLogger("uvicorn.access").level == logging.INFO
            assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


@pytest.mark.unit
class TestMetrics:
    def test_track_latency_observes_histogram(self):
        with track_latency(SEARCH_LATENCY, index="unit-test"):
            pass

        assert b'hugo_search_search_latency_seconds_count{index="unit-test"}' in get_metrics()

    def test_metrics_content_type(self):
        assert get_metrics_content_type().startswith("text/plain")
