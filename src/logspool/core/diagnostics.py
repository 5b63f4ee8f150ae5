"""
Internal diagnostics channel.

Emits structured, rate-limited warnings about non-fatal internal failures
(dropped records, connection errors, close errors) without going through
stdlib ``logging``. A ``LogspoolHandler`` attached to the root logger would
otherwise feed its own failures back into itself.

Emission is gated by ``core.internal_logging_enabled``. The setting is read
once and cached in ``_internal_logging_enabled``; tests reset the cache.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable

import orjson

Writer = Callable[[dict[str, Any]], None]

_RATE_LIMIT_WINDOW_SECONDS = 5.0

_internal_logging_enabled: bool | None = None
_debug_enabled: bool = False
_rate_lock = threading.Lock()
_last_emitted: dict[str, float] = {}


def _stderr_writer(payload: dict[str, Any]) -> None:
    line = orjson.dumps(payload, default=str)
    buf = sys.stderr.buffer if hasattr(sys.stderr, "buffer") else None
    if buf is not None:
        buf.write(line + b"\n")
        buf.flush()
    else:  # pragma: no cover - replaced stderr without a buffer
        sys.stderr.write(line.decode("utf-8") + "\n")
        sys.stderr.flush()


_writer: Writer = _stderr_writer


def _is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = True
    return _internal_logging_enabled


def _should_emit(rate_limit_key: str | None) -> bool:
    if rate_limit_key is None:
        return True
    now = time.monotonic()
    with _rate_lock:
        last = _last_emitted.get(rate_limit_key)
        if last is not None and now - last < _RATE_LIMIT_WINDOW_SECONDS:
            return False
        _last_emitted[rate_limit_key] = now
    return True


def _emit(
    level: str,
    component: str,
    message: str,
    rate_limit_key: str | None,
    fields: dict[str, Any],
) -> None:
    if not _is_enabled():
        return
    if not _should_emit(rate_limit_key):
        return
    payload: dict[str, Any] = {
        "timestamp": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    try:
        _writer(payload)
    except Exception:
        # Diagnostics must never raise into the engine
        pass


def warn(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    """Emit a WARN diagnostic for ``component``."""
    _emit("WARN", component, message, _rate_limit_key, fields)


def debug(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    """Emit a DEBUG diagnostic; only when debug output was switched on."""
    if not _debug_enabled:
        return
    _emit("DEBUG", component, message, _rate_limit_key, fields)


def set_debug(enabled: bool) -> None:
    global _debug_enabled
    _debug_enabled = bool(enabled)


def set_writer_for_tests(writer: Writer) -> None:
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _internal_logging_enabled, _debug_enabled, _writer
    _internal_logging_enabled = None
    _debug_enabled = False
    _writer = _stderr_writer
    with _rate_lock:
        _last_emitted.clear()
