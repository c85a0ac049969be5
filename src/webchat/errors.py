"""Exceptions raised by the chat connection service."""

from __future__ import annotations


class ChatServiceError(Exception):
    """Base class for chat service errors."""


class ChatConnectionError(ChatServiceError):
    """The WebSocket handshake failed or was cancelled.

    No partial connection state is retained when this is raised.
    """


class NotConnectedError(ChatServiceError):
    """An operation needed an open connection and there was none."""


class TransportError(ChatServiceError):
    """Sending a frame failed at the transport level."""
