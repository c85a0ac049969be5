"""Pytest configuration and shared fixtures for webchat tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from websockets.asyncio.server import serve

from tests.helpers import ChatServer, Recorder
from webchat.config.servers import ServerSettings
from webchat.service import ChatService


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> None:
    """Keep ~/.webchat lookups inside the test's temp directory."""
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest_asyncio.fixture
async def chat_server() -> AsyncIterator[ChatServer]:
    """Start a recording WebSocket server on an ephemeral port."""
    server = ChatServer()
    async with serve(server.handler, "127.0.0.1", 0) as ws_server:
        port = list(ws_server.sockets)[0].getsockname()[1]
        server.url = f"ws://127.0.0.1:{port}"
        yield server


@pytest_asyncio.fixture
async def stalled_server_url() -> AsyncIterator[str]:
    """A TCP server that accepts connections but never answers the handshake."""
    writers: list[asyncio.StreamWriter] = []

    async def hold(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writers.append(writer)

    server = await asyncio.start_server(hold, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"ws://127.0.0.1:{port}"
    finally:
        for writer in writers:
            writer.close()
        server.close()
        await server.wait_closed()


@pytest.fixture
def server_settings() -> ServerSettings:
    """Settings with short timeouts for tests."""
    return ServerSettings(open_timeout=2.0, close_timeout=1.0)


@pytest_asyncio.fixture
async def service(server_settings: ServerSettings) -> AsyncIterator[ChatService]:
    """A ChatService disposed after the test."""
    chat = ChatService(server_settings)
    yield chat
    await chat.dispose()


@pytest.fixture
def recorder(service: ChatService) -> Recorder:
    """Record notifications from the service fixture."""
    return Recorder(service)
