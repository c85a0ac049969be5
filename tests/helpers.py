"""Test helpers shared across test modules."""

from __future__ import annotations

import asyncio
import socket
from collections.abc import Awaitable, Callable

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from webchat.service import ChatService

Responder = Callable[[ServerConnection, str | bytes], Awaitable[None]]


class ChatServer:
    """In-process WebSocket server that records traffic."""

    def __init__(self) -> None:
        self.url = ""
        self.connections = 0
        self.received: list[str | bytes] = []
        self.close_codes: list[int | None] = []
        self.close_reasons: list[str | None] = []
        # Optional coroutine run for every incoming message
        self.responder: Responder | None = None

    async def handler(self, ws: ServerConnection) -> None:
        self.connections += 1
        try:
            async for message in ws:
                self.received.append(message)
                if self.responder is not None:
                    await self.responder(ws, message)
        except ConnectionClosed:
            pass
        finally:
            self.close_codes.append(ws.close_code)
            self.close_reasons.append(ws.close_reason)


class Recorder:
    """Collects service notifications."""

    def __init__(self, chat: ChatService) -> None:
        self.messages: list[str] = []
        self.closed = 0
        chat.on_message(self.messages.append)
        chat.on_closed(self._closed)

    def _closed(self) -> None:
        self.closed += 1


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until predicate() is true or fail after timeout seconds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


def unused_port() -> int:
    """Return a TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
