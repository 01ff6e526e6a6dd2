"""
Observability for restpipe.

Provides the structured logger and metrics adapters the Service uses
to report pipeline errors and request performance.

Design Philosophy:
- Structured logging by default (JSON-formatted, via stdlib logging)
- Metrics are optional; a missing adapter costs nothing
- Metrics failures are reported, never allowed to change a response
"""
from __future__ import annotations

import json
import logging
import os
import socket
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Levels understood by the pipeline logger."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def python_level(self) -> int:
        return _PYTHON_LEVELS[self]


_PYTHON_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


# =============================================================================
# JSON Logger
# =============================================================================


@dataclass
class JSONLogger:
    """
    Leveled logger that emits one JSON record per call.

    Each record includes:
    - timestamp (ISO 8601, UTC)
    - level
    - details (the message or exception text)
    - hostname
    - file (the caller's file:line)
    - stack_trace (when an exception is logged)
    - optional request_id and extra context fields

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "error",
         "details": "Database failed", "hostname": "api-1",
         "file": "/app/service.py:88", "resource": "widget"}
    """

    name: str = "restpipe"
    request_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def create_record(
        self,
        level: LogLevel,
        v: BaseException | str,
        context: dict[str, Any],
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "details": str(v),
            "hostname": _hostname(),
            "file": _caller(),
        }
        if isinstance(v, BaseException):
            record["error_type"] = type(v).__name__
            if v.__traceback__ is not None:
                record["stack_trace"] = "".join(
                    traceback.format_exception(type(v), v, v.__traceback__)
                )
        if self.request_id:
            record["request_id"] = self.request_id
        record.update(self.extra_context)
        record.update(context)
        return record

    def _log(self, level: LogLevel, v: BaseException | str, context: dict[str, Any]) -> None:
        record = self.create_record(level, v, context)
        if self._python_logger is None:
            self._python_logger = logging.getLogger(self.name)
        self._python_logger.log(level.python_level, json.dumps(record, default=str))

    def debug(self, v: BaseException | str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, v, context)

    def info(self, v: BaseException | str, **context: Any) -> None:
        self._log(LogLevel.INFO, v, context)

    def warning(self, v: BaseException | str, **context: Any) -> None:
        self._log(LogLevel.WARNING, v, context)

    def error(self, v: BaseException | str, **context: Any) -> None:
        self._log(LogLevel.ERROR, v, context)

    def fatal(self, v: BaseException | str, **context: Any) -> None:
        self._log(LogLevel.FATAL, v, context)

    def with_context(self, **extra: Any) -> "JSONLogger":
        """Create a new logger with additional context."""
        return JSONLogger(
            name=self.name,
            request_id=self.request_id,
            extra_context={**self.extra_context, **extra},
        )


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return os.environ.get("HOSTNAME", "")


def _caller() -> str:
    """file:line of the first frame outside this module."""
    for frame in reversed(traceback.extract_stack()[:-1]):
        if frame.filename != __file__:
            return f"{frame.filename}:{frame.lineno}"
    return ""


# =============================================================================
# Metrics
# =============================================================================


class MetricsClient(Protocol):
    """Statsd-style client wrapped by ServiceMetrics."""

    def incr(self, stat: str, tags: list[str], rate: float) -> None:
        ...

    def timing(self, stat: str, seconds: float, tags: list[str], rate: float) -> None:
        ...


class ServiceMetrics:
    """
    Metrics adapter over a statsd-style client.

    Client failures are logged (when a logger is set) and re-raised so
    the caller decides how much they matter.

    Example:
        metrics = ServiceMetrics().use_client(statsd).use_tags(["env:prod"])
        stop = metrics.new_timer("widget_findMany")
        ...
        stop()
    """

    def __init__(self) -> None:
        self.client: MetricsClient | None = None
        self.logger: Any = None
        self.tags: list[str] = []

    def use_client(self, client: MetricsClient) -> "ServiceMetrics":
        self.client = client
        return self

    def use_logger(self, logger: Any) -> "ServiceMetrics":
        self.logger = logger
        return self

    def use_tags(self, tags: list[str]) -> "ServiceMetrics":
        self.tags = list(tags)
        return self

    def incr(self, stat: str, count: int = 1) -> None:
        """Record an increment by count."""
        self._call(lambda client: client.incr(stat, self.tags, float(count)))

    def timing(self, stat: str, delta: int) -> None:
        """Record the time, in nanoseconds, taken to complete an operation."""
        self._call(lambda client: client.timing(stat, delta / 1e9, self.tags, 1.0))

    def new_timer(self, stat: str) -> Callable[[], None]:
        """Create a function that records the elapsed time when called."""
        start = time.perf_counter_ns()

        def stop() -> None:
            self.timing(stat, time.perf_counter_ns() - start)

        return stop

    def _call(self, fn: Callable[[MetricsClient], None]) -> None:
        if self.client is None:
            return
        try:
            fn(self.client)
        except Exception as e:
            if self.logger is not None:
                self.logger.error(e)
            raise


@dataclass
class InMemoryMetrics:
    """
    Metrics adapter that keeps counters and timings in memory.

    Useful for tests and local development. Not suitable for
    multi-process deployments.
    """

    counters: dict[str, int] = field(default_factory=dict)
    timings: dict[str, list[int]] = field(default_factory=dict)
    max_timing_entries: int = 1000

    def incr(self, stat: str, count: int = 1) -> None:
        self.counters[stat] = self.counters.get(stat, 0) + count

    def timing(self, stat: str, delta: int) -> None:
        values = self.timings.setdefault(stat, [])
        values.append(delta)
        if len(values) > self.max_timing_entries:
            del values[: len(values) - self.max_timing_entries]

    def new_timer(self, stat: str) -> Callable[[], None]:
        start = time.perf_counter_ns()

        def stop() -> None:
            self.timing(stat, time.perf_counter_ns() - start)

        return stop

    def get_stats(self) -> dict[str, Any]:
        """Summary of counters and mean timings in milliseconds."""
        return {
            "counters": dict(self.counters),
            "timings_ms": {
                stat: (sum(values) / len(values)) / 1e6
                for stat, values in self.timings.items()
                if values
            },
        }

    def reset(self) -> None:
        self.counters.clear()
        self.timings.clear()


__all__ = [
    "LogLevel",
    "JSONLogger",
    "MetricsClient",
    "ServiceMetrics",
    "InMemoryMetrics",
]
