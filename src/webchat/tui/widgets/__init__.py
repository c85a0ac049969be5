"""Textual widgets for the chat UI."""

from webchat.tui.widgets.chat import ChatHistory, ChatInput, ChatMessage

__all__ = ["ChatHistory", "ChatInput", "ChatMessage"]
