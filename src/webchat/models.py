"""Message envelope and connection lifecycle models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

# Close code and reason sent on a client-initiated disconnect
NORMAL_CLOSURE = 1000
CLIENT_DISCONNECT_REASON = "Client disconnect"


class ConnectionState(str, Enum):
    """Lifecycle state of the service's single connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class OutgoingMessage(BaseModel):
    """Envelope wrapped around every message the client sends.

    Serialized as compact JSON with the keys in declaration order, e.g.
    ``{"user":"alice","text":"hi"}``.
    """

    model_config = ConfigDict(frozen=True)

    user: str
    text: str

    def to_json(self) -> str:
        """Serialize to the wire format (one text frame per message)."""
        return self.model_dump_json()
