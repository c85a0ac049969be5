"""Tests for the message envelope and lifecycle models."""

import json

import pytest
from pydantic import ValidationError

from webchat.models import ConnectionState, OutgoingMessage

pytestmark = pytest.mark.unit


class TestOutgoingMessage:
    """Tests for OutgoingMessage serialization."""

    def test_compact_json_with_user_first(self) -> None:
        message = OutgoingMessage(user="alice", text="hi")
        assert message.to_json() == '{"user":"alice","text":"hi"}'

    def test_utf8_encoding_matches_wire_bytes(self) -> None:
        message = OutgoingMessage(user="alice", text="hi")
        assert message.to_json().encode("utf-8") == b'{"user":"alice","text":"hi"}'

    def test_non_ascii_is_not_escaped(self) -> None:
        message = OutgoingMessage(user="zoë", text="こんにちは")
        assert message.to_json() == '{"user":"zoë","text":"こんにちは"}'

    def test_special_characters_are_escaped(self) -> None:
        text = 'say "hi"\nthen \\ leave'
        payload = OutgoingMessage(user="alice", text=text).to_json()
        assert json.loads(payload) == {"user": "alice", "text": text}
        assert "\n" not in payload

    def test_empty_text_allowed(self) -> None:
        assert OutgoingMessage(user="alice", text="").to_json() == '{"user":"alice","text":""}'

    def test_is_immutable(self) -> None:
        message = OutgoingMessage(user="alice", text="hi")
        with pytest.raises(ValidationError):
            message.text = "changed"  # type: ignore[misc]


class TestConnectionState:
    """Tests for ConnectionState values."""

    def test_values(self) -> None:
        assert [state.value for state in ConnectionState] == [
            "disconnected",
            "connecting",
            "connected",
            "closing",
        ]
