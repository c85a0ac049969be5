"""webchat TUI.

A Textual-based terminal UI that sends and displays chat messages over a
single WebSocket connection.
"""

from webchat.tui.app import ChatApp

__all__ = ["ChatApp"]
