"""
WebSocket connection service for the chat client.

Owns exactly one client-side WebSocket session:
- connect: opening handshake, optionally linked to a caller cancel event
- send: JSON envelope, one text frame per message, serialized by a lock
- a background receive loop that reassembles fragmented messages
- disconnect/dispose: teardown that notifies subscribers exactly once

Subscribers register plain callables with on_message() and on_closed().
They run on the receive-loop task (or on whichever task performed the
teardown); UI consumers are responsible for marshaling to their own
context.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from webchat.config.servers import ServerSettings
from webchat.errors import ChatConnectionError, NotConnectedError, TransportError
from webchat.models import (
    CLIENT_DISCONNECT_REASON,
    NORMAL_CLOSURE,
    ConnectionState,
    OutgoingMessage,
)

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], None]
ClosedHandler = Callable[[], None]


class ChatService:
    """
    Single-connection WebSocket chat client.

    Example:
        ```python
        async with ChatService() as chat:
            chat.on_message(print)
            await chat.connect("ws://localhost:5000/ws", "alice")
            await chat.send("hi")
        ```
    """

    def __init__(self, settings: ServerSettings | None = None) -> None:
        """
        Initialize the service.

        Args:
            settings: Handshake/keepalive settings; defaults if omitted
        """
        self.settings = settings or ServerSettings()

        self._send_lock = asyncio.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._ws: ClientConnection | None = None
        self._endpoint: str | None = None
        self._username: str | None = None
        self._disposed = False

        # Set by disconnect() or dispose() to abort an in-flight handshake
        self._abort_connect: asyncio.Event | None = None
        # Per-connection tasks
        self._receive_task: asyncio.Task[None] | None = None
        self._cancel_watch: asyncio.Task[None] | None = None
        # Set once the current connection's teardown has finished
        self._closed: asyncio.Event | None = None

        self._message_handlers: list[MessageHandler] = []
        self._closed_handlers: list[ClosedHandler] = []

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Whether a connection is established and its transport is open.

        Advisory only: another task may close the connection right after
        this returns.
        """
        return (
            self._state is ConnectionState.CONNECTED
            and self._ws is not None
            and self._ws.state is State.OPEN
        )

    @property
    def endpoint(self) -> str | None:
        """URI of the most recent successful connection."""
        return self._endpoint

    @property
    def username(self) -> str | None:
        """Display name used for outgoing messages."""
        return self._username

    def on_message(self, handler: MessageHandler) -> None:
        """Register a callback for each complete incoming message."""
        self._message_handlers.append(handler)

    def on_closed(self, handler: ClosedHandler) -> None:
        """Register a callback for when the connection closes."""
        self._closed_handlers.append(handler)

    def remove_message_handler(self, handler: MessageHandler) -> None:
        """Unregister a message callback (no-op if not registered)."""
        if handler in self._message_handlers:
            self._message_handlers.remove(handler)

    def remove_closed_handler(self, handler: ClosedHandler) -> None:
        """Unregister a close callback (no-op if not registered)."""
        if handler in self._closed_handlers:
            self._closed_handlers.remove(handler)

    async def connect(
        self,
        endpoint: str,
        username: str,
        cancel: asyncio.Event | None = None,
    ) -> bool:
        """
        Connect to the chat server and start the receive loop.

        Args:
            endpoint: WebSocket URI (ws:// or wss://)
            username: Display name attached to outgoing messages
            cancel: Optional event; setting it aborts the handshake, or
                tears the connection down once established

        Returns:
            True if a new connection was opened, False if the service was
            already connected or connecting (nothing is done in that case)

        Raises:
            ChatConnectionError: If the handshake fails, is cancelled via
                ``cancel``, or the service has been disposed
        """
        if self._disposed:
            raise ChatConnectionError("Chat service has been disposed")
        if self._state is not ConnectionState.DISCONNECTED:
            logger.debug(f"Connect to {endpoint} ignored: service is {self._state.value}")
            return False
        if cancel is not None and cancel.is_set():
            raise ChatConnectionError("Connection attempt was cancelled")

        self._state = ConnectionState.CONNECTING
        abort = self._abort_connect = asyncio.Event()
        logger.info(f"Connecting to {endpoint} as {username}")
        try:
            ws = await self._open(endpoint, cancel, abort)
        except BaseException:
            self._state = ConnectionState.DISCONNECTED
            raise
        finally:
            self._abort_connect = None

        if self._disposed:
            ws.transport.abort()
            self._state = ConnectionState.DISCONNECTED
            raise ChatConnectionError("Chat service was disposed during the handshake")

        self._ws = ws
        self._endpoint = endpoint
        self._username = username
        self._closed = asyncio.Event()
        self._state = ConnectionState.CONNECTED

        self._receive_task = asyncio.create_task(
            self._receive_loop(ws), name="webchat-receive"
        )
        if cancel is not None:
            self._cancel_watch = asyncio.create_task(
                self._watch_cancel(ws, cancel), name="webchat-cancel-watch"
            )

        logger.info(f"Connected to {endpoint}")
        return True

    async def send(self, text: str) -> None:
        """
        Send a chat message wrapped as ``{"user": <username>, "text": <text>}``.

        Args:
            text: Message body

        Raises:
            NotConnectedError: If there is no open connection (no I/O is attempted)
            TransportError: If the frame could not be written
        """
        ws = self._ws
        if self._state is not ConnectionState.CONNECTED or ws is None or ws.state is not State.OPEN:
            raise NotConnectedError("Not connected")

        payload = OutgoingMessage(user=self._username or "", text=text).to_json()

        try:
            async with self._send_lock:
                await ws.send(payload)
        except (ConnectionClosed, OSError) as e:
            logger.warning(f"Send to {self._endpoint} failed: {e}")
            if self.settings.close_on_send_error and self._ws is ws:
                await self._teardown(graceful=True)
            raise TransportError(f"Failed to send message: {e}") from e

        logger.debug(f"Sent {len(payload)} chars to {self._endpoint}")

    async def disconnect(self) -> None:
        """
        Gracefully close the connection.

        While a handshake is in flight this aborts it instead; the pending
        connect() raises ChatConnectionError and no close notification
        fires. Idempotent. Overlapping calls wait for the first teardown to
        finish; the close notification fires only once.
        """
        if self._abort_connect is not None:
            logger.info("Disconnect requested during handshake; aborting")
            self._abort_connect.set()
            return
        await self._teardown(graceful=True)

    async def dispose(self) -> None:
        """Release the connection and background tasks without a close handshake.

        Safe to call repeatedly and without a prior disconnect. The service
        cannot connect again afterwards.
        """
        self._disposed = True
        if self._abort_connect is not None:
            self._abort_connect.set()
        if self._state is ConnectionState.CLOSING and self._ws is not None:
            # A graceful close is in progress; cut it short
            self._ws.transport.abort()
        await self._teardown(graceful=False)

    async def __aenter__(self) -> ChatService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    async def _open(
        self,
        endpoint: str,
        cancel: asyncio.Event | None,
        abort: asyncio.Event,
    ) -> ClientConnection:
        """Run the handshake, racing it against the cancel and abort events."""
        handshake = asyncio.create_task(self._handshake(endpoint))
        waiters = [asyncio.create_task(abort.wait())]
        if cancel is not None:
            waiters.append(asyncio.create_task(cancel.wait()))
        try:
            await asyncio.wait({handshake, *waiters}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await self._discard_handshake(handshake)
            raise
        finally:
            for waiter in waiters:
                waiter.cancel()

        if abort.is_set():
            await self._discard_handshake(handshake)
            raise ChatConnectionError(f"Connection attempt to {endpoint} was aborted")
        if cancel is not None and cancel.is_set():
            await self._discard_handshake(handshake)
            raise ChatConnectionError(f"Connection attempt to {endpoint} was cancelled")
        return handshake.result()

    async def _handshake(self, endpoint: str) -> ClientConnection:
        """Open the WebSocket, mapping library failures to ChatConnectionError."""
        try:
            return await connect(
                endpoint,
                open_timeout=self.settings.open_timeout,
                close_timeout=self.settings.close_timeout,
                ping_interval=self.settings.ping_interval,
                ping_timeout=self.settings.ping_timeout,
                max_size=self.settings.max_size,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            raise ChatConnectionError(f"Failed to connect to {endpoint}: {e}") from e

    @staticmethod
    async def _discard_handshake(handshake: asyncio.Task[ClientConnection]) -> None:
        """Stop a handshake task and drop any connection it produced."""
        handshake.cancel()
        await asyncio.wait({handshake})
        if handshake.cancelled() or handshake.exception() is not None:
            return
        handshake.result().transport.abort()

    async def _watch_cancel(self, ws: ClientConnection, cancel: asyncio.Event) -> None:
        """Tear the connection down when the caller's cancel event fires."""
        await cancel.wait()
        if self._ws is ws:
            logger.info(f"Connection to {self._endpoint} cancelled by caller")
            await self._teardown(graceful=True)

    async def _receive_loop(self, ws: ClientConnection) -> None:
        """Receive and dispatch messages until the connection ends."""
        try:
            while ws.state is State.OPEN:
                fragments: list[bytes] = []
                async for fragment in ws.recv_streaming(decode=False):
                    fragments.append(fragment)
                message = b"".join(fragments).decode("utf-8")
                logger.debug(f"Received {len(message)} chars in {len(fragments)} fragment(s)")
                self._dispatch_message(message)
        except asyncio.CancelledError:
            # Stopped by disconnect(), dispose() or the cancel watcher, which
            # own the teardown.
            logger.debug("Receive loop cancelled")
            return
        except ConnectionClosed as e:
            logger.info(f"Connection to {self._endpoint} closed by server: {e}")
        except Exception as e:
            logger.warning(f"Receive loop for {self._endpoint} failed: {e}")

        if self._ws is ws:
            await self._teardown(graceful=True)

    async def _teardown(self, *, graceful: bool) -> None:
        """
        Close the current connection and notify subscribers once.

        The CONNECTED -> CLOSING transition has no suspension point between
        the check and the set, so exactly one caller performs the teardown.
        Callers arriving during CLOSING wait for it to finish.
        """
        if self._state is ConnectionState.CLOSING:
            if self._closed is not None:
                await self._closed.wait()
            return
        if self._state is not ConnectionState.CONNECTED or self._ws is None:
            return

        self._state = ConnectionState.CLOSING
        ws = self._ws
        closed = self._closed

        try:
            await self._stop_tasks()
            if graceful:
                await self._close_transport(ws)
            else:
                ws.transport.abort()
        finally:
            self._ws = None
            self._receive_task = None
            self._cancel_watch = None
            self._state = ConnectionState.DISCONNECTED
            if closed is not None:
                closed.set()
            logger.info(f"Disconnected from {self._endpoint}")
            self._dispatch_closed()

    async def _stop_tasks(self) -> None:
        """Cancel the receive loop and cancel watcher, except the calling task."""
        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._cancel_watch, self._receive_task)
            if task is not None and task is not current and not task.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)

    @staticmethod
    async def _close_transport(ws: ClientConnection) -> None:
        """Best-effort close handshake with a normal-closure code."""
        if ws.state not in (State.OPEN, State.CLOSING):
            return
        try:
            await ws.close(code=NORMAL_CLOSURE, reason=CLIENT_DISCONNECT_REASON)
        except Exception as e:
            logger.debug(f"Ignoring error during close handshake: {e}")

    def _dispatch_message(self, message: str) -> None:
        for handler in list(self._message_handlers):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Message handler error: {e}", exc_info=True)

    def _dispatch_closed(self) -> None:
        for handler in list(self._closed_handlers):
            try:
                handler()
            except Exception as e:
                logger.error(f"Connection-closed handler error: {e}", exc_info=True)
