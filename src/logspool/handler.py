"""
Bridge from stdlib ``logging`` to an ``Appender``.

``LogspoolHandler`` renders each ``LogRecord`` with its ``logging.Formatter``
on the calling thread and hands the bytes to ``Appender.submit``, which never
blocks. Failures are reported by the appender's error handler; ``emit`` does
not raise.
"""

from __future__ import annotations

import logging
from typing import Any

from .core.appender import Appender
from .core.errors import ErrorHandler
from .core.settings import Settings
from .plugins.formatters import LoggingRecordFormatter
from .plugins.sinks import BaseListStore


class LogspoolHandler(logging.Handler):
    """Logging handler that spools formatted records to a Redis list.

    Example:
        handler = LogspoolHandler(Settings(redis={"key": "app:logs"}))
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logging.getLogger().addHandler(handler)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        level: int = logging.NOTSET,
        appender: Appender | None = None,
        store: BaseListStore | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        super().__init__(level)
        self._record_formatter = LoggingRecordFormatter()
        self._owns_appender = appender is None
        if appender is None:
            appender = Appender(
                settings,
                formatter=self._record_formatter,
                store=store,
                error_handler=error_handler,
            )
            appender.activate()
        self._appender = appender

    @property
    def appender(self) -> Appender:
        return self._appender

    def setFormatter(self, fmt: logging.Formatter | None) -> None:  # noqa: N802
        super().setFormatter(fmt)
        self._record_formatter = LoggingRecordFormatter(fmt)
        if self._owns_appender:
            self._appender.formatter = self._record_formatter

    def emit(self, record: logging.LogRecord) -> None:
        if self._owns_appender:
            # The appender renders with this handler's formatter
            self._appender.submit(record)
            return
        try:
            rendered: Any = self._record_formatter.format(record)
        except Exception:
            self.handleError(record)
            return
        self._appender.submit(rendered)

    def flush(self) -> None:
        self._appender.flush(
            timeout=self._appender.settings.appender.final_flush_timeout_seconds
        )

    def close(self) -> None:
        try:
            if self._owns_appender:
                self._appender.close()
        finally:
            super().close()
