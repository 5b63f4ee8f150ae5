"""
Public entrypoints for logspool.

Provides ``get_appender()`` and ``runtime()`` for wiring an appender from
settings (or environment variables) in one call.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from ._version import __version__
from .core.appender import Appender, SubmitResult
from .core.errors import ConfigurationError, ErrorHandler, ErrorKind
from .core.settings import Settings
from .handler import LogspoolHandler
from .plugins.formatters import BaseFormatter, JsonLinesFormatter
from .plugins.sinks import BaseListStore

__all__ = [
    "Appender",
    "ConfigurationError",
    "ErrorKind",
    "JsonLinesFormatter",
    "LogspoolHandler",
    "Settings",
    "SubmitResult",
    "VERSION",
    "__version__",
    "get_appender",
    "runtime",
]


def get_appender(
    settings: Settings | None = None,
    *,
    formatter: BaseFormatter | None = None,
    store: BaseListStore | None = None,
    error_handler: ErrorHandler | None = None,
) -> Appender:
    """Return an activated appender built from ``settings``.

    @docs:examples
    ```python
    from logspool import JsonLinesFormatter, Settings, get_appender

    # Zero-config (reads LOGSPOOL_* environment variables, key required)
    appender = get_appender(formatter=JsonLinesFormatter())
    appender.submit({"level": "INFO", "message": "Application started"})

    # Explicit settings
    settings = Settings(
        redis={"host": "cache", "key": "app:logs"},
        appender={"batch_size": 50, "always_batch": False},
    )
    appender = get_appender(settings, formatter=JsonLinesFormatter())

    # Flushes what is left and disconnects
    appender.close()
    ```

    @docs:notes
    - Raises ``ConfigurationError`` when no destination key is configured
    - The appender is registered for a best-effort close at interpreter exit
    - ``submit`` never blocks; see ``SubmitResult`` for its outcomes
    """
    appender = Appender(
        settings,
        formatter=formatter,
        store=store,
        error_handler=error_handler,
    )
    appender.activate()
    return appender


@contextmanager
def runtime(
    settings: Settings | None = None,
    *,
    formatter: BaseFormatter | None = None,
    store: BaseListStore | None = None,
    error_handler: ErrorHandler | None = None,
) -> Iterator[Appender]:
    """Context manager that activates an appender and closes it on exit."""
    appender = get_appender(
        settings,
        formatter=formatter,
        store=store,
        error_handler=error_handler,
    )
    try:
        yield appender
    finally:
        appender.close()


VERSION = __version__
