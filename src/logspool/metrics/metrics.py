"""
Prometheus-compatible metrics for the flush engine.

Design goals:
- Callable from producer threads and the flush thread alike
- Zero global state; each appender owns its collector and registry
- In-memory counters are always tracked so tests can assert on them; the
  Prometheus exporters exist only when metrics are enabled
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram


@dataclass
class AppenderMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    events_submitted: int = 0
    events_dropped: dict[str, int] = field(default_factory=dict)
    pushes: int = 0
    records_pushed: int = 0
    connect_failures: int = 0
    write_failures: int = 0
    records_purged: int = 0
    queue_high_watermark: int = 0

    @property
    def total_dropped(self) -> int:
        return sum(self.events_dropped.values())


class MetricsCollector:
    """Appender-scoped metrics collector.

    When disabled all exporter calls are skipped while the in-memory
    counters keep working.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = threading.Lock()
        self._state = AppenderMetrics()

        self._c_submitted: Any | None = None
        self._c_dropped: Any | None = None
        self._c_pushes: Any | None = None
        self._c_records_pushed: Any | None = None
        self._c_connect_failures: Any | None = None
        self._c_write_failures: Any | None = None
        self._c_purged: Any | None = None
        self._g_queue_hwm: Any | None = None
        self._h_push_latency: Any | None = None
        self._h_batch_size: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry to avoid global duplication across appenders
            self._registry = CollectorRegistry()
            self._c_submitted = Counter(
                "logspool_events_submitted_total",
                "Total number of records accepted into the queue",
                registry=self._registry,
            )
            self._c_dropped = Counter(
                "logspool_events_dropped_total",
                "Total number of records dropped",
                ["reason"],
                registry=self._registry,
            )
            self._c_pushes = Counter(
                "logspool_pushes_total",
                "Total number of successful batch pushes",
                registry=self._registry,
            )
            self._c_records_pushed = Counter(
                "logspool_records_pushed_total",
                "Total number of records delivered to the store",
                registry=self._registry,
            )
            self._c_connect_failures = Counter(
                "logspool_connect_failures_total",
                "Total number of failed connect or authenticate attempts",
                registry=self._registry,
            )
            self._c_write_failures = Counter(
                "logspool_write_failures_total",
                "Total number of failed batch pushes",
                registry=self._registry,
            )
            self._c_purged = Counter(
                "logspool_records_purged_total",
                "Total number of records purged after connection failures",
                registry=self._registry,
            )
            self._g_queue_hwm = Gauge(
                "logspool_queue_high_watermark",
                "Largest queue depth observed",
                registry=self._registry,
            )
            self._h_push_latency = Histogram(
                "logspool_push_seconds",
                "Latency of a single batch push",
                buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
                registry=self._registry,
            )
            self._h_batch_size = Histogram(
                "logspool_batch_size",
                "Number of records per push",
                buckets=(1, 2, 5, 10, 25, 50, 100, 250, 500, 1000),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    def record_event_submitted(self) -> None:
        with self._lock:
            self._state.events_submitted += 1
        if self._c_submitted is not None:
            self._c_submitted.inc()

    def record_events_dropped(self, count: int, *, reason: str) -> None:
        if count <= 0:
            return
        with self._lock:
            dropped = self._state.events_dropped
            dropped[reason] = dropped.get(reason, 0) + count
        if self._c_dropped is not None:
            self._c_dropped.labels(reason=reason).inc(count)

    def record_push(self, *, batch_size: int, latency_seconds: float) -> None:
        with self._lock:
            self._state.pushes += 1
            self._state.records_pushed += batch_size
        if self._c_pushes is not None:
            self._c_pushes.inc()
        if self._c_records_pushed is not None:
            self._c_records_pushed.inc(batch_size)
        if self._h_push_latency is not None:
            self._h_push_latency.observe(latency_seconds)
        if self._h_batch_size is not None:
            self._h_batch_size.observe(batch_size)

    def record_connect_failure(self) -> None:
        with self._lock:
            self._state.connect_failures += 1
        if self._c_connect_failures is not None:
            self._c_connect_failures.inc()

    def record_write_failure(self) -> None:
        with self._lock:
            self._state.write_failures += 1
        if self._c_write_failures is not None:
            self._c_write_failures.inc()

    def record_purged(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self._state.records_purged += count
        if self._c_purged is not None:
            self._c_purged.inc(count)

    def set_queue_high_watermark(self, value: int) -> None:
        with self._lock:
            if value <= self._state.queue_high_watermark:
                return
            self._state.queue_high_watermark = value
        if self._g_queue_hwm is not None:
            self._g_queue_hwm.set(value)

    def snapshot(self) -> AppenderMetrics:
        # Copy without exposing internals
        with self._lock:
            state = self._state
            return AppenderMetrics(
                events_submitted=state.events_submitted,
                events_dropped=dict(state.events_dropped),
                pushes=state.pushes,
                records_pushed=state.records_pushed,
                connect_failures=state.connect_failures,
                write_failures=state.write_failures,
                records_purged=state.records_purged,
                queue_high_watermark=state.queue_high_watermark,
            )
