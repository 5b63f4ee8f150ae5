from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from .redis import RedisListStore, RedisListStoreConfig


@runtime_checkable
class BaseListStore(Protocol):
    """Async interface of a remote append-only list store.

    The engine drives a store only from its flush thread. Implementations
    raise on failure; ``SinkConnection`` maps the exceptions to the error
    taxonomy and owns the connection state.
    """

    async def connect(self) -> None:
        """Open the transport to the store."""
        ...

    async def authenticate(self, credential: str) -> bool:  # noqa: ARG002
        """Present ``credential``; return True when the store accepts it."""
        ...

    async def append(self, key: str, records: Sequence[bytes]) -> int:  # noqa: ARG002
        """Atomically append ``records`` in order to the list at ``key``."""
        ...

    async def disconnect(self) -> None:
        """Close the transport; must be safe to call when not connected."""
        ...


__all__ = [
    "BaseListStore",
    "RedisListStore",
    "RedisListStoreConfig",
]
