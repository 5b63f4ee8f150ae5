"""
Dedicated flush thread with its own asyncio event loop.

``FlushScheduler`` owns one background thread. Work scheduled on it never
runs concurrently with itself:

- ``schedule_with_fixed_delay`` starts a periodic task whose next run is
  timed from the completion of the previous one, so a slow tick delays the
  next tick instead of overlapping it.
- ``ScheduledTask.cancel`` is cooperative: the stop event is only observed
  between ticks, so a tick in progress always runs to completion.
- ``run`` executes a one-off coroutine on the loop and blocks the caller
  until it finishes (used for flush, final flush and teardown).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Awaitable, Callable, TypeVar

from . import diagnostics

T = TypeVar("T")

Tick = Callable[[], Awaitable[None]]


class ScheduledTask:
    """Handle on a periodic task; acts as its cancellation token."""

    def __init__(self, scheduler: FlushScheduler, tick: Tick, period: float) -> None:
        self._scheduler = scheduler
        self._tick = tick
        self._period = period
        self._stop: asyncio.Event | None = None
        self._runner: asyncio.Task[None] | None = None
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Number of ticks that have completed."""
        return self._ticks

    @property
    def cancelled(self) -> bool:
        return self._stop is not None and self._stop.is_set()

    def done(self) -> bool:
        return self._runner is not None and self._runner.done()

    async def _install(self) -> None:
        stop = self._stop = asyncio.Event()
        self._runner = asyncio.get_running_loop().create_task(self._run(stop))

    async def _run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._period)
            except asyncio.TimeoutError:
                pass
            else:
                return
            try:
                await self._tick()
            except Exception as exc:
                # Keep the schedule alive; the next tick retries
                diagnostics.warn(
                    "scheduler",
                    "flush tick failed",
                    error_type=type(exc).__name__,
                    error=str(exc),
                    _rate_limit_key="tick",
                )
            self._ticks += 1

    async def _cancel_and_wait(self) -> None:
        if self._stop is not None:
            self._stop.set()
        if self._runner is not None:
            # asyncio.wait leaves the runner alone if this waiter is cancelled
            await asyncio.wait({self._runner})

    def cancel(self, timeout: float | None = None) -> None:
        """Stop dispatching ticks and wait for an in-flight tick to finish."""
        if self._runner is None or self._runner.done():
            return
        self._scheduler.run(self._cancel_and_wait, timeout=timeout)


class FlushScheduler:
    """Single background thread running an asyncio loop."""

    def __init__(self, *, name: str = "logspool-flush", daemon: bool = True) -> None:
        self._name = name
        self._daemon = daemon
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def in_scheduler_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def start(self) -> None:
        if self.is_running:
            return
        self._ready.clear()
        self._thread = threading.Thread(
            target=self._thread_main, name=self._name, daemon=self._daemon
        )
        self._thread.start()
        self._ready.wait()

    def _thread_main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            try:
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                if pending:
                    loop.run_until_complete(
                        asyncio.gather(*pending, return_exceptions=True)
                    )
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                loop.close()

    def schedule_with_fixed_delay(self, tick: Tick, period_seconds: float) -> ScheduledTask:
        """Run ``tick`` every ``period_seconds`` after the previous run ends.

        The first run happens one period after scheduling.
        """
        if period_seconds <= 0:
            raise ValueError("period_seconds must be > 0")
        task = ScheduledTask(self, tick, period_seconds)
        self.run(task._install)
        return task

    def run(
        self,
        factory: Callable[[], Awaitable[T]],
        *,
        timeout: float | None = None,
    ) -> T:
        """Run a coroutine on the flush loop and wait for its result.

        Raises ``TimeoutError`` when ``timeout`` elapses; the coroutine is
        cancelled in that case.
        """
        if self._loop is None or not self.is_running:
            raise RuntimeError("flush scheduler is not running")
        if self.in_scheduler_thread():
            raise RuntimeError("cannot block on the flush thread from itself")

        async def _call() -> T:
            return await factory()

        future: concurrent.futures.Future[T] = asyncio.run_coroutine_threadsafe(
            _call(), self._loop
        )
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            raise TimeoutError("flush loop call timed out") from exc

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop the loop and join the thread; pending tasks are cancelled."""
        loop, thread = self._loop, self._thread
        if loop is None or thread is None:
            return
        if thread.is_alive():
            try:
                loop.call_soon_threadsafe(loop.stop)
            except RuntimeError:
                # Loop already closed
                pass
            if not self.in_scheduler_thread():
                thread.join(timeout)
        self._loop = None
        self._thread = None


__all__ = ["FlushScheduler", "ScheduledTask"]
