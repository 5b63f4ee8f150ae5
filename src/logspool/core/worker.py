"""
Drain-and-push cycle executed on every flush tick.

One cycle:

1. Ensure the store connection is ready. On failure apply the retention
   policy (purge queue and buffer, or keep both for the next tick) and stop.
2. Push a buffer left full by an earlier cycle before draining further.
3. Move records one at a time from the queue into the batch buffer, pushing
   each time the buffer fills, until the queue is empty.
4. Push the partial tail unless ``always_batch`` holds it back. The final
   flush at shutdown always pushes the tail.

A failed push drops the batch it carried and ends the cycle; records still
queued wait for the next tick. Memory stays bounded by the batch size plus
the queue bound.
"""

from __future__ import annotations

import asyncio

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .batch import BatchBuffer
from .concurrency import EventQueue
from .connection import SinkConnection
from .errors import ConnectError, ErrorHandler, ErrorKind, SinkWriteError, report


class FlushWorker:
    """Runs flush cycles; owned by, and only called from, the flush thread."""

    def __init__(
        self,
        *,
        queue: EventQueue[bytes],
        buffer: BatchBuffer,
        connection: SinkConnection,
        error_handler: ErrorHandler,
        always_batch: bool = True,
        purge_on_failure: bool = True,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._queue = queue
        self._buffer = buffer
        self._connection = connection
        self._error_handler = error_handler
        self._always_batch = always_batch
        self._purge_on_failure = purge_on_failure
        self._metrics = metrics
        # Ticks and on-demand flushes share one loop and must not interleave
        self._cycle_lock = asyncio.Lock()

    @property
    def queue(self) -> EventQueue[bytes]:
        return self._queue

    @property
    def buffer(self) -> BatchBuffer:
        return self._buffer

    @property
    def connection(self) -> SinkConnection:
        return self._connection

    async def tick(self) -> None:
        await self.run_cycle(final=False)

    async def final_flush(self) -> bool:
        """Push everything still buffered or queued, partial tail included."""
        delivered = await self.run_cycle(final=True)
        if not delivered:
            lost = self._queue.clear() + self._buffer.reset()
            if lost:
                self._record_dropped(lost, reason="close")
                report(
                    self._error_handler,
                    ErrorKind.CLOSE,
                    "records lost at close",
                    count=lost,
                )
        return delivered

    async def run_cycle(self, *, final: bool = False) -> bool:
        """Run one drain-and-push cycle.

        Returns True when nothing failed; a tail held back by ``always_batch``
        is not a failure.
        """
        async with self._cycle_lock:
            return await self._run_cycle(final)

    async def _run_cycle(self, final: bool) -> bool:
        self._observe_queue()
        result = await self._connection.ensure_ready()
        if not result.ok:
            self._on_connect_failure(result.error)
            return False

        if self._buffer.is_full() and not await self._push():
            return False

        buffer = self._buffer
        while True:
            ok, record = self._queue.try_dequeue()
            if not ok or record is None:
                break
            buffer.append(record)
            if buffer.is_full() and not await self._push():
                return False

        if not buffer.is_empty() and (final or not self._always_batch):
            return await self._push()
        return True

    async def _push(self) -> bool:
        records = self._buffer.records()
        result = await self._connection.push(records)
        if result.ok:
            self._buffer.reset()
            if self._metrics is not None:
                self._metrics.record_push(
                    batch_size=result.count,
                    latency_seconds=result.latency_seconds,
                )
            return True
        dropped = self._buffer.reset()
        self._on_write_failure(result.error, dropped)
        return False

    def _on_connect_failure(self, error: ConnectError | None) -> None:
        if self._metrics is not None:
            self._metrics.record_connect_failure()
        purged = 0
        if self._purge_on_failure:
            diagnostics.debug("worker", "purging event queue")
            purged = self._queue.clear() + self._buffer.reset()
            if purged:
                self._record_dropped(purged, reason="purge")
                if self._metrics is not None:
                    self._metrics.record_purged(purged)
        report(
            self._error_handler,
            ErrorKind.CONNECT,
            "error connecting to store",
            error,
            purged=purged,
            retained=self._queue.qsize() + len(self._buffer),
        )

    def _on_write_failure(self, error: SinkWriteError | None, dropped: int) -> None:
        if self._metrics is not None:
            self._metrics.record_write_failure()
        self._record_dropped(dropped, reason="write")
        report(
            self._error_handler,
            ErrorKind.WRITE,
            "error pushing batch to store",
            error,
            dropped=dropped,
        )

    def _record_dropped(self, count: int, *, reason: str) -> None:
        if self._metrics is not None:
            self._metrics.record_events_dropped(count, reason=reason)

    def _observe_queue(self) -> None:
        if self._metrics is not None:
            self._metrics.set_queue_high_watermark(self._queue.high_watermark)
