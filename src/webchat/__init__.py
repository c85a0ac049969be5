"""webchat - a terminal chat client for WebSocket chat servers.

One WebSocket session per client: JSON-wrapped outgoing messages, a
background receive loop, and observer-style notifications for received
messages and connection closure.
"""

__version__ = "0.1.0"
