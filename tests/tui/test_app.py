"""Tests for the chat TUI against a local WebSocket server."""

from __future__ import annotations

import json

import pytest

from tests.helpers import ChatServer, unused_port, wait_for
from webchat.config.app import ChatClientConfig
from webchat.config.servers import ServerSettings
from webchat.models import ConnectionState
from webchat.tui.app import ChatApp, ChatFooter
from webchat.tui.widgets.chat import ChatHistory

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


def make_config(url: str) -> ChatClientConfig:
    return ChatClientConfig(
        username="alice",
        server=ServerSettings(url=url, open_timeout=2.0, close_timeout=1.0),
    )


def history_of(app: ChatApp) -> ChatHistory:
    return app.query_one("#chat-history", ChatHistory)


def contents(app: ChatApp, role: str) -> list[str]:
    return [m.content for m in history_of(app).messages if m.role == role]


class TestChatApp:
    async def test_connects_on_mount(self, chat_server: ChatServer) -> None:
        app = ChatApp(make_config(chat_server.url))

        async with app.run_test():
            await wait_for(lambda: app.query_one("#footer", ChatFooter).connected)

            assert app.service.is_connected
            assert f"Connected to {chat_server.url}" in contents(app, "system")

        assert app.service.state is ConnectionState.DISCONNECTED

    async def test_send_and_receive(self, chat_server: ChatServer) -> None:
        async def reply(ws, message):
            await ws.send(json.dumps({"user": "bob", "text": "hi back"}))

        chat_server.responder = reply
        app = ChatApp(make_config(chat_server.url))

        async with app.run_test() as pilot:
            await wait_for(lambda: app.service.is_connected)
            await pilot.press("h", "i", "enter")
            await wait_for(lambda: "hi back" in contents(app, "remote"))

            assert json.loads(chat_server.received[0]) == {"user": "alice", "text": "hi"}
            assert contents(app, "user") == ["hi"]
            remote = [m for m in history_of(app).messages if m.role == "remote"]
            assert remote[0].sender == "bob"

    async def test_failed_connect_reports_error(self) -> None:
        app = ChatApp(make_config(f"ws://127.0.0.1:{unused_port()}"))

        async with app.run_test():
            await wait_for(
                lambda: any(c.startswith("Connection failed") for c in contents(app, "system"))
            )

            assert not app.service.is_connected
            assert app.query_one("#footer", ChatFooter).connected is False

    async def test_submit_while_disconnected(self) -> None:
        app = ChatApp(make_config(f"ws://127.0.0.1:{unused_port()}"))

        async with app.run_test() as pilot:
            await wait_for(lambda: len(contents(app, "system")) == 1)
            await pilot.press("h", "i", "enter")
            await wait_for(lambda: len(contents(app, "system")) == 2)

            assert contents(app, "system")[-1].startswith("Not connected")
            assert contents(app, "user") == []

    async def test_server_close_updates_status(self, chat_server: ChatServer) -> None:
        async def hang_up(ws, message):
            await ws.close()

        chat_server.responder = hang_up
        app = ChatApp(make_config(chat_server.url))

        async with app.run_test() as pilot:
            await wait_for(lambda: app.service.is_connected)
            await pilot.press("b", "y", "e", "enter")
            await wait_for(lambda: any(c.startswith("Disconnected") for c in contents(app, "system")))

            assert app.query_one("#footer", ChatFooter).connected is False

    async def test_disconnect_and_reconnect_bindings(self, chat_server: ChatServer) -> None:
        app = ChatApp(make_config(chat_server.url))

        async with app.run_test() as pilot:
            await wait_for(lambda: app.service.is_connected)

            await pilot.press("ctrl+d")
            await wait_for(lambda: app.query_one("#footer", ChatFooter).connected is False)
            await wait_for(lambda: chat_server.close_codes == [1000])

            await pilot.press("ctrl+r")
            await wait_for(lambda: app.query_one("#footer", ChatFooter).connected)
            await wait_for(lambda: chat_server.connections == 2)

    async def test_history_reads_mounted_messages(self, chat_server: ChatServer) -> None:
        app = ChatApp(make_config(chat_server.url))

        async with app.run_test() as pilot:
            await wait_for(lambda: app.service.is_connected)
            history = history_of(app)
            await wait_for(lambda: len(history.messages) == 1)
            assert history.messages[0].role == "system"

            history.clear_history()
            await pilot.pause()
            await wait_for(lambda: history.messages == [])
