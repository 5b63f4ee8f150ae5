"""
Connection state machine wrapped around a list store.

States move ``DISCONNECTED -> CONNECTED -> READY`` and collapse back to
``DISCONNECTED`` on any error. Public operations never raise: they return a
result carrying the mapped ``LogspoolError`` for the caller to report.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Sequence

from ..plugins.utils import get_plugin_name
from . import diagnostics
from .errors import AuthenticationError, ConnectError, SinkWriteError

if TYPE_CHECKING:
    from ..plugins.sinks import BaseListStore


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    READY = "ready"


@dataclass(frozen=True)
class ConnectResult:
    ok: bool
    error: ConnectError | None = None


@dataclass(frozen=True)
class PushResult:
    ok: bool
    count: int = 0
    latency_seconds: float = 0.0
    error: SinkWriteError | None = None


class SinkConnection:
    """Owns the single connection between one appender and its store.

    Only the flush thread calls into this class, so it keeps no locks.
    """

    def __init__(
        self,
        store: BaseListStore,
        *,
        key: str,
        password: str | None = None,
        connect_timeout_seconds: float | None = None,
        push_timeout_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._password = password
        self._connect_timeout = connect_timeout_seconds
        self._push_timeout = push_timeout_seconds
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def key(self) -> str:
        return self._key

    @property
    def store(self) -> BaseListStore:
        return self._store

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    async def ensure_ready(self) -> ConnectResult:
        if self._state is ConnectionState.READY:
            return ConnectResult(ok=True)
        try:
            await _bounded(self._open(), self._connect_timeout)
        except ConnectError as exc:
            await self._drop_transport()
            return ConnectResult(ok=False, error=exc)
        except Exception as exc:
            await self._drop_transport()
            return ConnectResult(
                ok=False,
                error=ConnectError(
                    f"error connecting to store: {str(exc) or type(exc).__name__}",
                    cause=exc,
                    store=get_plugin_name(self._store),
                ),
            )
        return ConnectResult(ok=True)

    async def _open(self) -> None:
        diagnostics.debug(
            "connection", "connecting to store", store=get_plugin_name(self._store)
        )
        await self._store.connect()
        self._state = ConnectionState.CONNECTED
        if self._password is not None:
            try:
                accepted = await self._store.authenticate(self._password)
            except Exception as exc:
                raise AuthenticationError(
                    f"error authenticating with store: {str(exc) or type(exc).__name__}",
                    cause=exc,
                    store=get_plugin_name(self._store),
                ) from exc
            if not accepted:
                raise AuthenticationError(
                    "store rejected credentials",
                    store=get_plugin_name(self._store),
                )
        self._state = ConnectionState.READY

    async def push(self, records: Sequence[bytes]) -> PushResult:
        """Append ``records`` to the destination key in one operation."""
        if not records:
            return PushResult(ok=True)
        if self._state is not ConnectionState.READY:
            return PushResult(
                ok=False,
                error=SinkWriteError("store connection is not ready", key=self._key),
            )
        diagnostics.debug(
            "connection", "sending batch", count=len(records), key=self._key
        )
        start = time.perf_counter()
        try:
            await _bounded(self._store.append(self._key, records), self._push_timeout)
        except Exception as exc:
            await self._drop_transport()
            return PushResult(
                ok=False,
                error=SinkWriteError(
                    f"error pushing batch: {str(exc) or type(exc).__name__}",
                    cause=exc,
                    key=self._key,
                    count=len(records),
                ),
            )
        return PushResult(
            ok=True,
            count=len(records),
            latency_seconds=time.perf_counter() - start,
        )

    async def disconnect(self) -> None:
        """Release the store connection.

        Errors propagate so that ``close()`` can report them as close failures;
        the state is DISCONNECTED either way.
        """
        self._state = ConnectionState.DISCONNECTED
        await self._store.disconnect()

    async def _drop_transport(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        try:
            await self._store.disconnect()
        except Exception:
            # Already failed; a second failure adds nothing actionable
            pass


async def _bounded(aw: Awaitable[Any], timeout: float | None) -> None:
    if timeout is None:
        await aw
    else:
        await asyncio.wait_for(aw, timeout=timeout)
