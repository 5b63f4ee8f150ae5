"""Exit-time close of live appenders.

- Atexit handler closes registered appenders so queued records get a final
  flush on normal interpreter exit
- WeakSet-based registration so an abandoned appender can still be collected

The handler is best-effort: ``Appender.close`` bounds its own final flush and
never raises.
"""

from __future__ import annotations

import atexit
import weakref
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .appender import Appender


_shutdown_in_progress: bool = False
_registered_appenders: weakref.WeakSet[Any] = weakref.WeakSet()


def _atexit_close_enabled() -> bool:
    try:
        from .settings import Settings

        return bool(Settings().core.atexit_close_enabled)
    except Exception:  # pragma: no cover - invalid environment configuration
        return True


def register_appender(appender: Appender) -> None:
    """Register an appender for close at interpreter exit."""
    _registered_appenders.add(appender)


def unregister_appender(appender: Appender) -> None:
    """Forget an appender; called by ``Appender.close``."""
    _registered_appenders.discard(appender)


def registered_appenders() -> list[Appender]:
    return list(_registered_appenders)


def _atexit_handler() -> None:
    """Close every registered appender. Called by atexit; never raises."""
    global _shutdown_in_progress

    if _shutdown_in_progress:
        return
    if not _atexit_close_enabled():
        return
    _shutdown_in_progress = True

    # Snapshot; WeakSet iteration can fail if GC runs mid-iteration
    try:
        appenders = list(_registered_appenders)
    except Exception:  # pragma: no cover - rare GC race
        return

    for appender in appenders:
        try:
            appender.close()
        except Exception:
            pass  # Best effort - don't crash on exit


atexit.register(_atexit_handler)
