"""
Redis list store.

Appends each batch with a single ``RPUSH key r1 r2 ...`` so the batch lands
atomically and in order. Uses a single-connection ``redis.asyncio`` client so
that the pushes travel on the connection that was authenticated.

redis-py sends its connection handshake (``AUTH``, ``CLIENT SETINFO``) before
any command, and a server with ``requirepass`` refuses everything else until
``AUTH`` succeeds. The credential therefore has to be part of the client
itself: when one is configured, ``connect`` defers and ``authenticate`` opens
the connection with it.
"""

from __future__ import annotations

from typing import Any, Sequence

import redis.asyncio as redis  # type: ignore
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from redis.asyncio.retry import Retry  # type: ignore
from redis.backoff import NoBackoff  # type: ignore

from ..utils import parse_plugin_config

__all__ = ["RedisListStore", "RedisListStoreConfig"]


class RedisListStoreConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    password: SecretStr | None = None
    socket_connect_timeout: float | None = Field(default=2.0, gt=0.0)
    socket_timeout: float | None = Field(default=5.0, gt=0.0)


class RedisListStore:
    """List store backed by a Redis server."""

    name = "redis"

    def __init__(
        self,
        config: RedisListStoreConfig | dict | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = parse_plugin_config(RedisListStoreConfig, config, **kwargs)
        self._client: Any = None

    @property
    def config(self) -> RedisListStoreConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        await self.disconnect()
        if self._config.password is not None:
            # AUTH is part of the handshake; authenticate() opens the connection
            return
        self._client = await self._open(None)

    async def authenticate(self, credential: str) -> bool:
        await self.disconnect()
        try:
            self._client = await self._open(credential)
        except redis.AuthenticationError:
            return False
        return True

    async def append(self, key: str, records: Sequence[bytes]) -> int:
        if self._client is None:
            raise redis.ConnectionError("not connected")
        if not records:
            return 0
        length = await self._client.rpush(key, *records)
        return int(length)

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await _close_quietly(client)

    async def _open(self, password: str | None) -> Any:
        client = redis.Redis(
            host=self._config.host,
            port=self._config.port,
            db=self._config.db,
            password=password,
            socket_connect_timeout=self._config.socket_connect_timeout,
            socket_timeout=self._config.socket_timeout,
            single_connection_client=True,
            # RESP2 authenticates with a plain AUTH on every redis-py release
            protocol=2,
            # The flush tick owns retries
            retry=Retry(NoBackoff(), 0),
        )
        try:
            # Opens the dedicated connection and runs the handshake eagerly
            await client.initialize()
        except BaseException:
            await _close_quietly(client)
            raise
        return client


async def _close_quietly(client: Any) -> None:
    try:
        await client.aclose()
    except Exception:
        # The transport is already gone; nothing left to release
        pass


PLUGIN_METADATA = {
    "name": "redis",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "logspool.plugins.sinks.redis:RedisListStore",
    "description": "Redis list store using RPUSH per batch.",
    "author": "logspool",
    "api_version": "1.0",
}
