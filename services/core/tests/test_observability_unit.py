"""Unit tests for observability features (structured logging, metrics)."""

import json
import logging
import sys
import threading
from io import StringIO

import pytest

from outlets_core.observability.logging import (
    JsonFormatter,
    RequestContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    reset_request_context,
    set_request_context,
)
from outlets_core.observability.metrics import MetricsCollector


def make_record(msg="Test message", level=logging.INFO, args=()):
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestJsonFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_log_record(self):
        """Test formatting a basic log record to JSON."""
        parsed = json.loads(JsonFormatter().format(make_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["service"] == "outlets-service"
        assert "timestamp" in parsed
        assert "source" not in parsed

    def test_format_log_with_message_args(self):
        parsed = json.loads(
            JsonFormatter().format(make_record("Upserted %d outlets", args=(3,)))
        )
        assert parsed["message"] == "Upserted 3 outlets"

    def test_warning_includes_source(self):
        parsed = json.loads(JsonFormatter().format(make_record(level=logging.WARNING)))
        assert parsed["source"]["line"] == 42

    def test_format_log_with_extra_fields(self):
        """Test formatting log record with extra fields."""
        record = make_record()
        record.outlet_id = "outlet-1"
        record.payload = object()

        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["outlet_id"] == "outlet-1"
        assert isinstance(parsed["payload"], str)

    def test_format_log_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        parsed = json.loads(JsonFormatter().format(record))

        assert "ValueError: Test error" in parsed["exception"]

    def test_includes_ambient_request_context(self):
        token = set_request_context(RequestContext(request_id="req-123", org_id="org-9"))
        try:
            parsed = json.loads(JsonFormatter().format(make_record()))
        finally:
            reset_request_context(token)

        assert parsed["request_id"] == "req-123"
        assert parsed["org_id"] == "org-9"

    def test_custom_service_name(self):
        parsed = json.loads(JsonFormatter(service_name="outlets-test").format(make_record()))
        assert parsed["service"] == "outlets-test"


class TestRequestContext:
    """Tests for request context."""

    def test_context_to_dict_skips_empty_fields(self):
        context = RequestContext(request_id="req-1", path="/outlets", method="GET")

        assert context.to_dict() == {
            "request_id": "req-1",
            "path": "/outlets",
            "method": "GET",
        }

    def test_context_with_extra_data(self):
        context = RequestContext(request_id="req-1", extra={"campaign_id": "c-1"})
        assert context.to_dict()["campaign_id"] == "c-1"


class TestStructuredLogger:
    """Tests for structured logger."""

    @pytest.fixture
    def buffer(self):
        buffer = StringIO()
        handler = logging.StreamHandler(buffer)
        handler.setFormatter(JsonFormatter())
        logger = logging.getLogger("test.structured")
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        yield buffer
        logger.removeHandler(handler)

    def test_log_with_extra_fields(self, buffer):
        StructuredLogger("test.structured").info("Outlet created", outlet_id="o-1")

        parsed = json.loads(buffer.getvalue().strip())
        assert parsed["outlet_id"] == "o-1"

    def test_log_with_context(self, buffer):
        context = RequestContext(request_id="req-123")

        StructuredLogger("test.structured").warning("Slow query", context=context)

        parsed = json.loads(buffer.getvalue().strip())
        assert parsed["request_id"] == "req-123"
        assert parsed["level"] == "WARNING"

    def test_log_error_with_exception(self, buffer):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            StructuredLogger("test.structured").error("Failed", exc_info=True)

        parsed = json.loads(buffer.getvalue().strip())
        assert "RuntimeError: boom" in parsed["exception"]

    def test_get_logger_same_name_returns_same_instance(self):
        assert get_logger("test.same") is get_logger("test.same")
        assert isinstance(get_logger("test.same"), StructuredLogger)


class TestConfigureLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_configure_logging_sets_level(self):
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_json_format(self):
        configure_logging(json_format=True, service_name="outlets-core")

        (handler,) = logging.getLogger().handlers
        assert isinstance(handler.formatter, JsonFormatter)
        assert handler.formatter.service_name == "outlets-core"

    def test_configure_logging_plain_format(self):
        configure_logging(json_format=False)

        (handler,) = logging.getLogger().handlers
        assert not isinstance(handler.formatter, JsonFormatter)


class TestMetricsCollector:
    """Tests for the in-process metrics collector."""

    def test_increment_counter_with_labels(self):
        collector = MetricsCollector()

        collector.increment("http_requests_total", labels={"method": "GET", "status": "200"})
        collector.increment("http_requests_total", labels={"status": "200", "method": "GET"})

        assert collector.get("http_requests_total", {"method": "GET", "status": "200"}) == 2
        assert collector.get("http_requests_total", {"method": "POST", "status": "200"}) == 0

    def test_record_histogram(self):
        collector = MetricsCollector()
        for value in (10, 20, 30, 40):
            collector.record_histogram("http_request_duration_ms", value)

        stats = collector.get_histogram_stats("http_request_duration_ms")

        assert stats["count"] == 4
        assert stats["min"] == 10
        assert stats["max"] == 40
        assert stats["avg"] == 25

    def test_histogram_keeps_most_recent_samples(self):
        collector = MetricsCollector(max_samples=5)
        for value in range(1, 13):
            collector.record_histogram("http_request_duration_ms", value, {"method": "GET"})

        stats = collector.get_histogram_stats("http_request_duration_ms", {"method": "GET"})

        assert stats["count"] == 5
        assert stats["min"] == 8
        assert stats["max"] == 12

    def test_empty_histogram(self):
        assert MetricsCollector().get_histogram_stats("missing")["count"] == 0

    def test_get_all_is_json_serializable(self):
        collector = MetricsCollector()
        collector.increment("outlets_upserted_total")
        collector.record_histogram("http_request_duration_ms", 5)

        snapshot = json.loads(json.dumps(collector.get_all()))

        assert snapshot["counters"]["outlets_upserted_total"] == 1
        assert snapshot["histograms"]["http_request_duration_ms"]["count"] == 1

    def test_reset_metrics(self):
        collector = MetricsCollector()
        collector.increment("outlets_upserted_total")

        collector.reset()

        assert collector.get_all() == {"counters": {}, "histograms": {}}

    def test_metrics_collector_thread_safety(self):
        collector = MetricsCollector()

        def increment_counter():
            for _ in range(100):
                collector.increment("concurrent_counter")

        threads = [threading.Thread(target=increment_counter) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert collector.get("concurrent_counter") == 1000
