from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .json_lines import JsonLinesFormatter
from .logging_record import LoggingRecordFormatter


@runtime_checkable
class BaseFormatter(Protocol):
    """Renders one caller-supplied event into the bytes pushed to the store.

    May raise; the appender reports the failure and drops the event.
    """

    def format(self, event: Any) -> bytes | str:  # noqa: D401
        ...


class RawFormatter:
    """Pass-through formatter for events that are already rendered."""

    name = "raw"

    def format(self, event: Any) -> bytes | str:
        if isinstance(event, (bytes, str)):
            return event
        if isinstance(event, (bytearray, memoryview)):
            return bytes(event)
        raise TypeError(
            f"raw formatter expects bytes or str, got {type(event).__name__}"
        )


def encode_record(rendered: bytes | str) -> bytes:
    """Normalize formatter output to the bytes stored in the queue."""
    if isinstance(rendered, bytes):
        return rendered
    if isinstance(rendered, str):
        return rendered.encode("utf-8")
    if isinstance(rendered, (bytearray, memoryview)):
        return bytes(rendered)
    raise TypeError(f"formatter returned {type(rendered).__name__}, not bytes or str")


__all__ = [
    "BaseFormatter",
    "JsonLinesFormatter",
    "LoggingRecordFormatter",
    "RawFormatter",
    "encode_record",
]
