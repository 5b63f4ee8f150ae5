"""Tests for the FlushScheduler background loop."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from logspool.core.scheduler import FlushScheduler


@pytest.fixture
def scheduler():
    sched = FlushScheduler(name="test-flush")
    sched.start()
    try:
        yield sched
    finally:
        sched.shutdown(timeout=2.0)


def test_start_runs_named_thread(scheduler: FlushScheduler) -> None:
    assert scheduler.is_running
    assert scheduler.thread is not None
    assert scheduler.thread.name == "test-flush"
    assert scheduler.thread.daemon


def test_run_returns_result_on_loop_thread(scheduler: FlushScheduler) -> None:
    async def where() -> str:
        return threading.current_thread().name

    assert scheduler.run(where, timeout=1.0) == "test-flush"


def test_run_propagates_exceptions(scheduler: FlushScheduler) -> None:
    async def boom() -> None:
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        scheduler.run(boom, timeout=1.0)


def test_run_times_out(scheduler: FlushScheduler) -> None:
    async def slow() -> None:
        await asyncio.sleep(5)

    with pytest.raises(TimeoutError):
        scheduler.run(slow, timeout=0.05)


def test_run_requires_running_scheduler() -> None:
    sched = FlushScheduler()

    async def noop() -> None:
        return None

    with pytest.raises(RuntimeError):
        sched.run(noop)


def test_fixed_delay_ticks_repeat(scheduler: FlushScheduler) -> None:
    ticked = threading.Event()
    count = 0

    async def tick() -> None:
        nonlocal count
        count += 1
        if count >= 3:
            ticked.set()

    task = scheduler.schedule_with_fixed_delay(tick, 0.01)

    assert ticked.wait(2.0)
    task.cancel(timeout=1.0)
    assert task.done()
    assert task.cancelled
    assert task.ticks >= 3


def test_slow_tick_is_never_overlapped(scheduler: FlushScheduler) -> None:
    active = 0
    overlap = False
    done = threading.Event()
    runs = 0

    async def tick() -> None:
        nonlocal active, overlap, runs
        active += 1
        overlap = overlap or active > 1
        await asyncio.sleep(0.03)
        active -= 1
        runs += 1
        if runs >= 3:
            done.set()

    task = scheduler.schedule_with_fixed_delay(tick, 0.001)
    assert done.wait(2.0)
    task.cancel(timeout=1.0)
    assert not overlap


def test_cancel_waits_for_in_flight_tick(scheduler: FlushScheduler) -> None:
    started = threading.Event()
    finished = []

    async def tick() -> None:
        started.set()
        await asyncio.sleep(0.1)
        finished.append(True)

    task = scheduler.schedule_with_fixed_delay(tick, 0.001)
    assert started.wait(2.0)

    task.cancel(timeout=2.0)

    assert finished == [True]
    ticks = task.ticks
    time.sleep(0.05)
    assert task.ticks == ticks


def test_failing_tick_keeps_schedule_alive(scheduler: FlushScheduler) -> None:
    calls = 0
    again = threading.Event()

    async def tick() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("first tick fails")
        again.set()

    task = scheduler.schedule_with_fixed_delay(tick, 0.01)
    assert again.wait(2.0)
    task.cancel(timeout=1.0)


def test_invalid_period_rejected(scheduler: FlushScheduler) -> None:
    async def tick() -> None:
        return None

    with pytest.raises(ValueError):
        scheduler.schedule_with_fixed_delay(tick, 0)


def test_shutdown_joins_thread() -> None:
    sched = FlushScheduler(name="short-lived")
    sched.start()
    thread = sched.thread
    assert thread is not None

    sched.shutdown(timeout=2.0)

    assert not thread.is_alive()
    assert not sched.is_running
    sched.shutdown()
