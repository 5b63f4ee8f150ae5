"""RedisListStore driving the real redis.asyncio client over a local RESP server."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Iterator

import pytest

from logspool import Settings
from logspool.core.appender import Appender
from logspool.core.connection import ConnectionState, SinkConnection
from logspool.core.errors import AuthenticationError
from logspool.plugins.sinks import RedisListStore


async def _read_command(reader: asyncio.StreamReader) -> list[bytes] | None:
    header = await reader.readline()
    if not header:
        return None
    if not header.startswith(b"*"):
        return header.split()
    args = []
    for _ in range(int(header[1:])):
        length = int((await reader.readline())[1:])
        args.append((await reader.readexactly(length + 2))[:-2])
    return args


class RespServer:
    """Speaks enough RESP2 for a list store and enforces ``requirepass``.

    Runs on its own thread and loop so appenders can reach it from their
    flush threads.
    """

    def __init__(self, requirepass: str | None = None) -> None:
        self.requirepass = requirepass
        self.commands: list[str] = []
        self.lists: dict[str, list[bytes]] = {}
        self.port = 0
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._thread = threading.Thread(
            target=self._serve, name="resp-server", daemon=True
        )

    def start(self) -> None:
        self._thread.start()
        if not self._ready.wait(5.0):
            raise RuntimeError("RESP server did not start")

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(5.0)

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        server = self._loop.run_until_complete(
            asyncio.start_server(self._handle, "127.0.0.1", 0)
        )
        self.port = server.sockets[0].getsockname()[1]
        self._ready.set()
        self._loop.run_forever()
        server.close()
        tasks = asyncio.all_tasks(self._loop)
        for task in tasks:
            task.cancel()
        self._loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        self._loop.close()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        authenticated = self.requirepass is None
        try:
            while True:
                args = await _read_command(reader)
                if args is None:
                    break
                name = args[0].decode().upper()
                self.commands.append(name)
                if name == "AUTH":
                    if self.requirepass is None:
                        reply = b"-ERR Client sent AUTH, but no password is set\r\n"
                    elif args[-1].decode() == self.requirepass:
                        authenticated = True
                        reply = b"+OK\r\n"
                    else:
                        reply = (
                            b"-WRONGPASS invalid username-password pair "
                            b"or user is disabled.\r\n"
                        )
                elif not authenticated:
                    reply = b"-NOAUTH Authentication required.\r\n"
                elif name in ("CLIENT", "SELECT"):
                    reply = b"+OK\r\n"
                elif name == "PING":
                    reply = b"+PONG\r\n"
                elif name == "RPUSH":
                    target = self.lists.setdefault(args[1].decode(), [])
                    target.extend(args[2:])
                    reply = b":%d\r\n" % len(target)
                else:
                    reply = b"-ERR unknown command '%s'\r\n" % args[0]
                writer.write(reply)
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@pytest.fixture
def resp_server() -> Iterator[Callable[..., RespServer]]:
    servers: list[RespServer] = []

    def start(requirepass: str | None = None) -> RespServer:
        server = RespServer(requirepass)
        server.start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()


def _connection(server: RespServer, password: str | None) -> SinkConnection:
    store = RedisListStore(host="127.0.0.1", port=server.port, password=password)
    return SinkConnection(
        store,
        key="logs",
        password=password,
        connect_timeout_seconds=2.0,
        push_timeout_seconds=2.0,
    )


async def test_password_is_sent_during_the_handshake(resp_server) -> None:
    server = resp_server("secret")
    conn = _connection(server, "secret")
    try:
        result = await conn.ensure_ready()
        assert result.ok, result.error
        assert (await conn.push([b"a", b"b"])).ok
    finally:
        await conn.disconnect()

    assert server.commands[0] == "AUTH"
    assert "HELLO" not in server.commands
    assert server.commands.index("AUTH") < server.commands.index("RPUSH")
    assert server.lists["logs"] == [b"a", b"b"]


async def test_wrong_password_is_an_authentication_error(resp_server) -> None:
    server = resp_server("secret")
    conn = _connection(server, "wrong")

    result = await conn.ensure_ready()

    assert not result.ok
    assert isinstance(result.error, AuthenticationError)
    assert conn.state is ConnectionState.DISCONNECTED
    assert server.commands == ["AUTH"]
    assert "logs" not in server.lists


async def test_missing_password_fails_to_connect(resp_server) -> None:
    server = resp_server("secret")
    conn = _connection(server, None)

    result = await conn.ensure_ready()

    assert not result.ok
    assert "AUTH" not in server.commands


async def test_open_server_needs_no_auth(resp_server) -> None:
    server = resp_server()
    conn = _connection(server, None)
    try:
        assert (await conn.ensure_ready()).ok
        assert (await conn.push([b"x"])).ok
    finally:
        await conn.disconnect()

    assert "AUTH" not in server.commands
    assert server.lists["logs"] == [b"x"]


@pytest.mark.critical
def test_appender_pushes_to_password_protected_server(resp_server) -> None:
    server = resp_server("secret")
    settings = Settings(
        redis={
            "host": "127.0.0.1",
            "port": server.port,
            "password": "secret",
            "key": "app:logs",
        },
        appender={"period_ms": 60_000},
    )

    with Appender(settings) as app:
        app.submit(b"one")
        app.submit(b"two")
        assert app.flush(timeout=5.0) is True

    assert server.lists["app:logs"] == [b"one", b"two"]
    assert server.commands.count("AUTH") == 1
