"""
Appender: lifecycle and producer-facing surface of the flush engine.

An ``Appender`` owns exactly one queue, batch buffer, store connection and
flush thread, bundled in an immutable ``AppenderResources`` that is replaced
as a unit by ``activate`` and released by ``close``.

- ``submit`` formats an event and enqueues it. It never blocks and never
  raises; the outcome is a ``SubmitResult``.
- ``activate`` validates configuration (the only operation that raises),
  builds and publishes new resources, then tears down any previous ones.
- ``close`` stops ticking, performs a final flush, and disconnects. Failures
  are reported, never raised.
"""

from __future__ import annotations

import itertools
import threading
import types
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..metrics.metrics import MetricsCollector
from ..plugins.formatters import BaseFormatter, RawFormatter, encode_record
from ..plugins.sinks import BaseListStore, RedisListStore
from .batch import BatchBuffer
from .concurrency import EventQueue
from .connection import SinkConnection
from .errors import (
    ConfigurationError,
    DiagnosticsErrorHandler,
    ErrorHandler,
    ErrorKind,
    report,
)
from .scheduler import FlushScheduler, ScheduledTask
from .settings import Settings
from .shutdown import register_appender, unregister_appender
from .worker import FlushWorker

StoreFactory = Callable[[Settings], BaseListStore]

_thread_ids = itertools.count(1)


class SubmitResult(str, Enum):
    ACCEPTED = "accepted"
    REJECTED_FULL = "rejected_full"
    FORMAT_FAILED = "format_failed"
    NOT_ACTIVE = "not_active"

    @property
    def ok(self) -> bool:
        return self is SubmitResult.ACCEPTED


@dataclass(frozen=True)
class AppenderResources:
    """Everything one activation owns; replaced and released as a unit."""

    settings: Settings
    queue: EventQueue[bytes]
    buffer: BatchBuffer
    connection: SinkConnection
    worker: FlushWorker
    scheduler: FlushScheduler
    task: ScheduledTask


def default_store_factory(settings: Settings) -> BaseListStore:
    redis_cfg = settings.redis
    return RedisListStore(
        host=redis_cfg.host,
        port=redis_cfg.port,
        password=redis_cfg.password,
        socket_connect_timeout=redis_cfg.connect_timeout_seconds,
        socket_timeout=redis_cfg.push_timeout_seconds,
    )


class Appender:
    """Batches formatted records and flushes them to a remote list store.

    Example:
        appender = Appender(Settings(redis={"key": "logs"}))
        appender.activate()
        appender.submit(b"hello")
        appender.close()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        formatter: BaseFormatter | None = None,
        store: BaseListStore | None = None,
        store_factory: StoreFactory | None = None,
        error_handler: ErrorHandler | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._formatter: BaseFormatter = formatter or RawFormatter()
        if store is not None and store_factory is not None:
            raise ValueError("pass either store or store_factory, not both")
        if store is not None:
            self._store_factory: StoreFactory = lambda _settings: store
        else:
            self._store_factory = store_factory or default_store_factory
        self._error_handler: ErrorHandler = error_handler or DiagnosticsErrorHandler()
        self._metrics = metrics or MetricsCollector(
            enabled=self._settings.core.enable_metrics
        )
        self._lifecycle_lock = threading.RLock()
        self._resources: AppenderResources | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def formatter(self) -> BaseFormatter:
        return self._formatter

    @formatter.setter
    def formatter(self, formatter: BaseFormatter) -> None:
        self._formatter = formatter

    @property
    def error_handler(self) -> ErrorHandler:
        return self._error_handler

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def resources(self) -> AppenderResources | None:
        return self._resources

    @property
    def is_active(self) -> bool:
        return self._resources is not None

    def pending(self) -> int:
        """Records queued or buffered but not yet pushed (approximate)."""
        res = self._resources
        if res is None:
            return 0
        return res.queue.qsize() + len(res.buffer)

    # Lifecycle

    def activate(self, settings: Settings | None = None) -> None:
        """Start, or restart with new settings.

        Raises ``ConfigurationError`` when no destination key is configured
        or the new resources cannot be built; in both cases a running
        configuration is left untouched.

        On restart the new resources are published before the old ones are
        torn down, so producers never observe an inactive appender. Records
        left behind by the old activation are moved into the new queue after
        its flush thread has stopped.
        """
        cfg = settings or self._settings
        key = cfg.redis.key
        if key is None:
            raise ConfigurationError("Must set 'key'", field="redis.key")

        with self._lifecycle_lock:
            try:
                resources = self._build(cfg, key)
            except Exception as exc:
                raise ConfigurationError(
                    f"error building appender resources: {exc}", cause=exc
                ) from exc
            previous = self._resources
            self._settings = cfg
            self._resources = resources
            if previous is not None:
                previous.queue.seal()
                self._teardown(previous, final_flush=False)
                self._carry_over(previous, resources)
        register_appender(self)

    def _build(self, cfg: Settings, key: str) -> AppenderResources:
        appender_cfg = cfg.appender
        redis_cfg = cfg.redis
        queue: EventQueue[bytes] = EventQueue(appender_cfg.queue_capacity)
        buffer = BatchBuffer(appender_cfg.batch_size)
        connection = SinkConnection(
            self._store_factory(cfg),
            key=key,
            password=(
                redis_cfg.password.get_secret_value()
                if redis_cfg.password is not None
                else None
            ),
            connect_timeout_seconds=redis_cfg.connect_timeout_seconds,
            push_timeout_seconds=redis_cfg.push_timeout_seconds,
        )
        worker = FlushWorker(
            queue=queue,
            buffer=buffer,
            connection=connection,
            error_handler=self._error_handler,
            always_batch=appender_cfg.always_batch,
            purge_on_failure=appender_cfg.purge_on_failure,
            metrics=self._metrics,
        )
        scheduler = FlushScheduler(
            name=f"{cfg.core.app_name}-flush-{next(_thread_ids)}",
            daemon=appender_cfg.daemon_thread,
        )
        scheduler.start()
        try:
            task = scheduler.schedule_with_fixed_delay(
                worker.tick, appender_cfg.period_seconds
            )
        except Exception:
            scheduler.shutdown()
            raise
        return AppenderResources(
            settings=cfg,
            queue=queue,
            buffer=buffer,
            connection=connection,
            worker=worker,
            scheduler=scheduler,
            task=task,
        )

    def _carry_over(self, old: AppenderResources, new: AppenderResources) -> None:
        """Move records left by the previous activation into the new queue."""
        pending = old.buffer.records()
        old.buffer.reset()
        while True:
            ok, record = old.queue.try_dequeue()
            if not ok or record is None:
                break
            pending.append(record)
        dropped = 0
        for record in pending:
            if not new.queue.try_enqueue(record):
                dropped += 1
        if dropped:
            self._metrics.record_events_dropped(dropped, reason="reconfigure")
            report(
                self._error_handler,
                ErrorKind.ENQUEUE,
                "queue at capacity after reconfiguration, records dropped",
                count=dropped,
            )

    def close(self) -> None:
        """Stop ticking, flush what is left, and disconnect. Never raises."""
        with self._lifecycle_lock:
            resources, self._resources = self._resources, None
            if resources is not None:
                resources.queue.seal()
                self._teardown(resources, final_flush=True)
        unregister_appender(self)

    def _teardown(self, res: AppenderResources, *, final_flush: bool) -> None:
        timeout = res.settings.appender.final_flush_timeout_seconds
        try:
            res.task.cancel(timeout=timeout)
        except Exception as exc:
            self._report_close("error cancelling flush task", exc)
        if final_flush:
            try:
                res.scheduler.run(res.worker.final_flush, timeout=timeout)
            except Exception as exc:
                self._report_close("error during final flush", exc)
        try:
            res.scheduler.run(res.connection.disconnect, timeout=timeout)
        except Exception as exc:
            self._report_close("error disconnecting from store", exc)
        try:
            res.scheduler.shutdown(timeout=timeout)
        except Exception as exc:
            self._report_close("error stopping flush thread", exc)

    def _report_close(self, message: str, exc: BaseException) -> None:
        report(self._error_handler, ErrorKind.CLOSE, message, exc)

    # Producer surface

    def submit(self, event: Any) -> SubmitResult:
        """Format ``event`` and queue it for the next flush; never blocks."""
        res = self._resources
        if res is None:
            return self._reject_inactive()
        try:
            record = encode_record(self._formatter.format(event))
        except Exception as exc:
            self._metrics.record_events_dropped(1, reason="format")
            report(
                self._error_handler,
                ErrorKind.FORMAT,
                "error formatting event, the event will be dropped",
                exc,
            )
            return SubmitResult.FORMAT_FAILED
        while not res.queue.try_enqueue(record):
            if not res.queue.sealed:
                self._metrics.record_events_dropped(1, reason="queue_full")
                report(
                    self._error_handler,
                    ErrorKind.ENQUEUE,
                    "Failed to enqueue an event because the queue is at "
                    "capacity, the event will be dropped",
                    capacity=res.queue.capacity,
                )
                return SubmitResult.REJECTED_FULL
            # Replaced or closed since it was read; follow the current one
            current = self._resources
            if current is None or current is res:
                return self._reject_inactive()
            res = current
        self._metrics.record_event_submitted()
        return SubmitResult.ACCEPTED

    def _reject_inactive(self) -> SubmitResult:
        self._metrics.record_events_dropped(1, reason="inactive")
        report(
            self._error_handler,
            ErrorKind.ENQUEUE,
            "appender is not active, the event will be dropped",
        )
        return SubmitResult.NOT_ACTIVE

    def flush(self, timeout: float | None = None) -> bool:
        """Run one flush cycle now and wait for it.

        ``always_batch`` still applies. Returns False when the cycle failed,
        timed out, or the appender is not active.
        """
        res = self._resources
        if res is None:
            return False
        try:
            return res.scheduler.run(res.worker.run_cycle, timeout=timeout)
        except Exception as exc:
            report(self._error_handler, ErrorKind.WRITE, "error during flush", exc)
            return False

    def __enter__(self) -> Appender:
        if not self.is_active:
            self.activate()
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: types.TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "Appender",
    "AppenderResources",
    "StoreFactory",
    "SubmitResult",
    "default_store_factory",
]
