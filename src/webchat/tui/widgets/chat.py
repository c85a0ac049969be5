"""Chat widgets: message history and input."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Input, Static


class ChatMessage(Static):
    """One line of chat: a ``sender  HH:MM`` line above the message body."""

    DEFAULT_CSS = """
    ChatMessage {
        height: auto;
        padding: 0 1;
        border-left: thick #6c7086;
    }

    ChatMessage.--user {
        border-left: thick #06b6d4;
    }

    ChatMessage.--remote {
        border-left: thick #7c3aed;
    }

    ChatMessage.--system {
        color: #6c7086;
        text-style: italic;
    }

    ChatMessage .message-meta {
        text-style: bold;
    }
    """

    def __init__(
        self,
        sender: str,
        content: str,
        role: str = "remote",
        timestamp: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.sender = sender
        self.content = content
        self.role = role
        self.timestamp = timestamp or datetime.now().strftime("%H:%M")
        self.add_class(f"--{role}")

    def compose(self) -> ComposeResult:
        # Sender names and server text are untrusted; never parse them as markup
        yield Static(f"{self.sender}  {self.timestamp}", classes="message-meta", markup=False)
        yield Static(self.content, classes="message-content", markup=False)


class ChatHistory(VerticalScroll):
    """Scrollable chat history that follows the newest message."""

    DEFAULT_CSS = """
    ChatHistory {
        height: 1fr;
        padding: 1;
        background: #1e1e2e;
    }
    """

    def add_message(
        self,
        sender: str,
        content: str,
        role: str = "remote",
        timestamp: str | None = None,
    ) -> ChatMessage:
        """Append a message and scroll to it."""
        message = ChatMessage(sender, content, role, timestamp)
        self.mount(message)
        self.scroll_end(animate=False)
        return message

    @property
    def messages(self) -> list[ChatMessage]:
        """Messages currently shown, oldest first."""
        return list(self.query(ChatMessage))

    def clear_history(self) -> None:
        """Clear all messages."""
        self.remove_children()


class ChatInput(Widget):
    """Single-line chat input with send button."""

    DEFAULT_CSS = """
    ChatInput {
        height: auto;
        padding: 0 1;
        border-top: solid #45475a;
        background: #313244;
    }

    ChatInput .input-row {
        layout: horizontal;
        height: auto;
    }

    ChatInput #message-input {
        width: 1fr;
        margin-right: 1;
    }

    ChatInput #send-button {
        width: 10;
    }
    """

    @dataclass
    class Submitted(Message):
        """Posted when the user submits a non-empty message."""

        text: str

    def compose(self) -> ComposeResult:
        with Horizontal(classes="input-row"):
            yield Input(placeholder="Type a message and press Enter", id="message-input")
            yield Button("Send", variant="primary", id="send-button")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-button":
            event.stop()
            self._submit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit()

    def _submit(self) -> None:
        field = self.query_one("#message-input", Input)
        text = field.value.strip()
        if text:
            self.post_message(self.Submitted(text))
            field.value = ""

    def focus_input(self) -> None:
        """Focus the input field."""
        self.query_one("#message-input", Input).focus()
