"""Reusable fixed-capacity batch buffer owned by the flush thread."""

from __future__ import annotations


class BatchBuffer:
    """Preallocated slots for encoded records plus a fill cursor.

    The buffer is reused across flush cycles; ``reset()`` rewinds the cursor
    and releases references to pushed records.
    """

    __slots__ = ("_slots", "_size", "_cursor")

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("size must be > 0")
        self._slots: list[bytes | None] = [None] * size
        self._size = size
        self._cursor = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return self._cursor

    def is_full(self) -> bool:
        return self._cursor == self._size

    def is_empty(self) -> bool:
        return self._cursor == 0

    def append(self, record: bytes) -> None:
        if self._cursor >= self._size:
            raise OverflowError("batch buffer is full")
        self._slots[self._cursor] = record
        self._cursor += 1

    def records(self) -> list[bytes]:
        """Return a copy of the valid records in insertion order."""
        return self._slots[: self._cursor]  # type: ignore[return-value]

    def reset(self) -> int:
        """Rewind the cursor; returns how many records were discarded."""
        count = self._cursor
        for i in range(count):
            self._slots[i] = None
        self._cursor = 0
        return count
