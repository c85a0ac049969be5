"""webchat TUI - main application entry point."""

from __future__ import annotations

import json

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Static

from webchat.config.app import ChatClientConfig
from webchat.errors import ChatConnectionError, ChatServiceError
from webchat.service import ChatService
from webchat.tui.widgets.chat import ChatHistory, ChatInput


def parse_incoming(raw: str) -> tuple[str | None, str]:
    """
    Split an incoming payload into (sender, text) for display.

    Servers that relay the client envelope send ``{"user": ..., "text": ...}``;
    anything else is shown verbatim with no sender.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        return None, raw
    if isinstance(data, dict) and isinstance(data.get("text"), str):
        user = data.get("user")
        return (user if isinstance(user, str) and user else None), data["text"]
    return None, raw


class ChatHeader(Static):
    """Header showing the endpoint and username."""

    DEFAULT_CSS = """
    ChatHeader {
        dock: top;
        height: 1;
        background: #7c3aed;
        color: white;
        text-style: bold;
        padding: 0 1;
    }
    """


class ChatFooter(Static):
    """Footer with key hints and connection status."""

    DEFAULT_CSS = """
    ChatFooter {
        dock: bottom;
        height: 1;
        background: #313244;
        color: #a6adc8;
        layout: horizontal;
    }

    ChatFooter #footer-hints {
        width: 1fr;
        padding: 0 1;
    }

    ChatFooter #footer-status {
        width: auto;
        padding: 0 1;
    }

    ChatFooter .connected {
        color: #22c55e;
    }

    ChatFooter .disconnected {
        color: #ef4444;
    }
    """

    connected = reactive(False)

    def compose(self) -> ComposeResult:
        yield Static("[Ctrl+R] Reconnect  [Ctrl+D] Disconnect  [Ctrl+Q] Quit", id="footer-hints")
        yield Static("Disconnected", id="footer-status", classes="disconnected")

    def watch_connected(self, connected: bool) -> None:
        status_widget = self.query_one("#footer-status", Static)
        if connected:
            status_widget.update("Connected")
            status_widget.remove_class("disconnected")
            status_widget.add_class("connected")
        else:
            status_widget.update("Disconnected")
            status_widget.remove_class("connected")
            status_widget.add_class("disconnected")


class ChatApp(App[None]):
    """Terminal chat client bound to one ChatService."""

    TITLE = "webchat"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+r", "reconnect", "Reconnect", priority=True),
        # Input binds ctrl+d to delete-right
        Binding("ctrl+d", "disconnect", "Disconnect", priority=True),
    ]

    class Incoming(Message):
        """A raw message received by the service."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class Closed(Message):
        """The service's connection closed."""

    def __init__(
        self,
        config: ChatClientConfig,
        service: ChatService | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        self.service = service or ChatService(config.server)

        # Service callbacks run on the receive-loop task; hop onto the
        # app's message queue before touching widgets.
        self.service.on_message(self._on_service_message)
        self.service.on_closed(self._on_service_closed)

    def compose(self) -> ComposeResult:
        yield ChatHeader(f"{self.config.username} @ {self.config.server.url}", id="header")
        yield ChatHistory(id="chat-history")
        yield ChatInput(id="chat-input")
        yield ChatFooter(id="footer")

    def on_mount(self) -> None:
        self.query_one("#chat-input", ChatInput).focus_input()
        self.run_worker(self._connect(), group="connect", exclusive=True)

    async def _connect(self) -> None:
        history = self.query_one("#chat-history", ChatHistory)
        url = self.config.server.url
        try:
            opened = await self.service.connect(url, self.config.username)
        except ChatConnectionError as e:
            history.add_message("System", f"Connection failed: {e}", role="system")
            return
        if opened:
            self.query_one("#footer", ChatFooter).connected = True
            history.add_message("System", f"Connected to {url}", role="system")

    def _on_service_message(self, text: str) -> None:
        self.post_message(self.Incoming(text))

    def _on_service_closed(self) -> None:
        self.post_message(self.Closed())

    def on_chat_app_incoming(self, message: Incoming) -> None:
        sender, text = parse_incoming(message.text)
        history = self.query_one("#chat-history", ChatHistory)
        history.add_message(sender or "Server", text, role="remote")

    def on_chat_app_closed(self, message: Closed) -> None:
        self.query_one("#footer", ChatFooter).connected = False
        history = self.query_one("#chat-history", ChatHistory)
        history.add_message("System", "Disconnected. Press Ctrl+R to reconnect.", role="system")

    async def on_chat_input_submitted(self, event: ChatInput.Submitted) -> None:
        history = self.query_one("#chat-history", ChatHistory)
        if not self.service.is_connected:
            history.add_message("System", "Not connected. Press Ctrl+R to reconnect.", role="system")
            return
        try:
            await self.service.send(event.text)
        except ChatServiceError as e:
            history.add_message("System", f"Send failed: {e}", role="system")
            return
        history.add_message(self.config.username, event.text, role="user")

    def action_reconnect(self) -> None:
        """Open a new connection if none is live."""
        self.run_worker(self._connect(), group="connect", exclusive=True)

    async def action_disconnect(self) -> None:
        """Close the current connection."""
        await self.service.disconnect()

    async def on_unmount(self) -> None:
        """Release the connection on exit."""
        await self.service.dispose()


def run_tui(config: ChatClientConfig) -> None:
    """Entry point for the TUI application."""
    app = ChatApp(config)
    app.run()
