"""
Server connection configuration module.

Contains the Pydantic config model for the remote chat server:
- ServerSettings: endpoint URL, handshake/close timeouts, keepalive,
  maximum message size and the send-failure policy
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

__all__ = ["ServerSettings"]


class ServerSettings(BaseModel):
    """Remote WebSocket chat server settings."""

    url: str = Field(
        default="ws://localhost:5000/ws",
        description="WebSocket endpoint of the chat server (ws:// or wss://)",
    )
    open_timeout: float = Field(
        default=10.0,
        description="Seconds allowed for the opening handshake",
    )
    close_timeout: float = Field(
        default=10.0,
        description="Seconds allowed for the closing handshake",
    )
    ping_interval: float | None = Field(
        default=20.0,
        description="Keepalive ping interval in seconds (None disables keepalive)",
    )
    ping_timeout: float = Field(
        default=20.0,
        description="Pong timeout in seconds before considering the connection dead",
    )
    max_size: int = Field(
        default=2**20,
        description="Maximum size in bytes of a reassembled incoming message",
    )
    close_on_send_error: bool = Field(
        default=True,
        description="Tear the connection down when a send fails at the transport level",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the URL uses a WebSocket scheme and names a host."""
        parsed = urlparse(v)
        if parsed.scheme not in ("ws", "wss"):
            raise ValueError("URL scheme must be ws or wss")
        if not parsed.hostname:
            raise ValueError("URL must include a host")
        return v

    @field_validator("open_timeout", "close_timeout", "ping_interval", "ping_timeout", "max_size")
    @classmethod
    def validate_positive(cls, v: float | None) -> float | None:
        """Validate value is positive."""
        if v is not None and v <= 0:
            raise ValueError("Value must be positive")
        return v
