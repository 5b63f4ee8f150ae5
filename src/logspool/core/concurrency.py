"""
Thread-safe, non-blocking queue between producer threads and the flush thread.

``EventQueue`` is the only structure shared between application threads and
the background flush thread:

- Many producers call ``try_enqueue``; it never waits for space.
- One consumer calls ``try_dequeue`` and ``clear``.
- A short critical section on a ``threading.Lock`` keeps inserts, pops and
  purges consistent; no call holds the lock across I/O.
- ``seal`` refuses further inserts once a queue is retired, so a producer
  holding a stale reference can tell "full" apart from "replaced".
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class EventQueue(Generic[T]):
    """FIFO queue, optionally bounded, that rejects instead of blocking.

    ``capacity == 0`` means unbounded.
    """

    __slots__ = ("_items", "_capacity", "_lock", "_high_watermark", "_sealed")

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self._items: deque[T] = deque()
        self._capacity = capacity
        self._lock = threading.Lock()
        self._high_watermark = 0
        self._sealed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def bounded(self) -> bool:
        return self._capacity > 0

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def high_watermark(self) -> int:
        return self._high_watermark

    def qsize(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return self.bounded and len(self._items) >= self._capacity

    def try_enqueue(self, item: T) -> bool:
        """Append ``item``; returns False if the queue is full or sealed."""
        with self._lock:
            if self._sealed:
                return False
            size = len(self._items)
            if self._capacity and size >= self._capacity:
                return False
            self._items.append(item)
            if size + 1 > self._high_watermark:
                self._high_watermark = size + 1
        return True

    def try_dequeue(self) -> tuple[bool, T | None]:
        """Pop the oldest item; returns (False, None) if empty."""
        with self._lock:
            if not self._items:
                return False, None
            return True, self._items.popleft()

    def seal(self) -> None:
        """Refuse every later insert. Queued items stay until drained."""
        with self._lock:
            self._sealed = True

    def clear(self) -> int:
        """Drop every queued item and return how many were dropped."""
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
        return dropped


__all__ = ["EventQueue"]
