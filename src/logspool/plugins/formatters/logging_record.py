"""
Formatter for stdlib ``logging.LogRecord`` events.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import orjson


class LoggingRecordFormatter:
    """Render ``logging.LogRecord`` events.

    With a ``logging.Formatter`` the record is rendered as text by it;
    otherwise it becomes a JSON document with the usual record fields.
    """

    name = "logging-record"

    def __init__(self, formatter: logging.Formatter | None = None) -> None:
        self._formatter = formatter

    @property
    def formatter(self) -> logging.Formatter | None:
        return self._formatter

    def format(self, event: Any) -> bytes | str:
        if not isinstance(event, logging.LogRecord):
            raise TypeError(
                f"expected logging.LogRecord, got {type(event).__name__}"
            )
        if self._formatter is not None:
            return self._formatter.format(event)
        return orjson.dumps(self._to_dict(event), default=str)

    def _to_dict(self, record: logging.LogRecord) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
            "process": record.process,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            data["exception"] = logging.Formatter().formatException(record.exc_info)
        elif record.exc_text:
            data["exception"] = record.exc_text
        if record.stack_info:
            data["stack"] = record.stack_info
        return data
