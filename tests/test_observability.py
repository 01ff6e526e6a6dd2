"""
Tests for restpipe observability module.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest

from restpipe.contracts import Logger, Metrics
from restpipe.observability import InMemoryMetrics, JSONLogger, LogLevel, ServiceMetrics

# =============================================================================
# JSONLogger Tests
# =============================================================================


class TestJSONLogger:
    """Tests for JSONLogger."""

    def test_satisfies_protocol(self):
        assert isinstance(JSONLogger(), Logger)

    def test_record_fields(self):
        logger = JSONLogger(name="test")
        record = logger.create_record(LogLevel.INFO, "Test message", {})

        assert record["level"] == "info"
        assert record["details"] == "Test message"
        assert "timestamp" in record
        assert "hostname" in record
        assert "test_observability.py:" in record["file"]

    def test_record_from_exception(self):
        logger = JSONLogger(name="test")
        try:
            raise RuntimeError("Database failed")
        except RuntimeError as e:
            record = logger.create_record(LogLevel.ERROR, e, {"stage": "execute"})

        assert record["details"] == "Database failed"
        assert record["error_type"] == "RuntimeError"
        assert "Traceback" in record["stack_trace"]
        assert record["stage"] == "execute"

    def test_includes_request_id_and_extra_context(self):
        logger = JSONLogger(
            name="test",
            request_id="req-123",
            extra_context={"service": "restpipe"},
        )
        record = logger.create_record(LogLevel.WARNING, "x", {})

        assert record["request_id"] == "req-123"
        assert record["service"] == "restpipe"

    def test_emits_json_through_logging(self, caplog):
        logger = JSONLogger(name="restpipe.test")
        with caplog.at_level(logging.INFO, logger="restpipe.test"):
            logger.error("Storage failed", resource="widget")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.ERROR
        payload = json.loads(caplog.records[0].getMessage())
        assert payload["resource"] == "widget"

    def test_fatal_maps_to_critical(self, caplog):
        logger = JSONLogger(name="restpipe.test")
        with caplog.at_level(logging.INFO, logger="restpipe.test"):
            logger.fatal("gone")

        assert caplog.records[0].levelno == logging.CRITICAL

    def test_with_context_creates_new_logger(self):
        logger = JSONLogger(name="test", request_id="req-123")
        new_logger = logger.with_context(resource="widget")

        assert new_logger is not logger
        assert new_logger.request_id == "req-123"
        assert new_logger.extra_context.get("resource") == "widget"
        assert logger.extra_context == {}


# =============================================================================
# ServiceMetrics Tests
# =============================================================================


class TestServiceMetrics:
    def test_satisfies_protocol(self):
        assert isinstance(ServiceMetrics(), Metrics)

    def test_without_client_is_noop(self):
        metrics = ServiceMetrics()
        metrics.incr("a")
        metrics.timing("a", 10)
        metrics.new_timer("a")()

    def test_forwards_with_tags(self):
        client = MagicMock()
        metrics = ServiceMetrics().use_client(client).use_tags(["env:test"])

        metrics.incr("widget_insertOne", 2)
        metrics.timing("widget_insertOne", 1_500_000_000)

        client.incr.assert_called_once_with("widget_insertOne", ["env:test"], 2.0)
        client.timing.assert_called_once_with("widget_insertOne", 1.5, ["env:test"], 1.0)

    def test_timer_records_elapsed(self):
        client = MagicMock()
        metrics = ServiceMetrics().use_client(client)

        stop = metrics.new_timer("widget_findMany")
        stop()

        stat, seconds, _, _ = client.timing.call_args.args
        assert stat == "widget_findMany"
        assert seconds >= 0

    def test_client_failure_is_logged_and_raised(self):
        client = MagicMock()
        client.incr.side_effect = OSError("statsd down")
        logger = MagicMock()
        metrics = ServiceMetrics().use_client(client).use_logger(logger)

        with pytest.raises(OSError):
            metrics.incr("a")
        logger.error.assert_called_once()


# =============================================================================
# InMemoryMetrics Tests
# =============================================================================


class TestInMemoryMetrics:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryMetrics(), Metrics)

    def test_counters(self):
        metrics = InMemoryMetrics()
        metrics.incr("a")
        metrics.incr("a", 2)
        assert metrics.counters == {"a": 3}

    def test_timings_are_bounded(self):
        metrics = InMemoryMetrics(max_timing_entries=2)
        for delta in (1, 2, 3):
            metrics.timing("a", delta)
        assert metrics.timings["a"] == [2, 3]

    def test_get_stats(self):
        metrics = InMemoryMetrics()
        metrics.incr("a")
        metrics.timing("a", 2_000_000)
        metrics.timing("a", 4_000_000)

        stats = metrics.get_stats()

        assert stats["counters"] == {"a": 1}
        assert stats["timings_ms"] == {"a": 3.0}

    def test_reset(self):
        metrics = InMemoryMetrics()
        metrics.incr("a")
        metrics.new_timer("a")()
        metrics.reset()
        assert metrics.get_stats() == {"counters": {}, "timings_ms": {}}
