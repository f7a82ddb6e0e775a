"""Tests for core/messages.py: the tagged-variant parse at the protocol boundary."""

from __future__ import annotations

import json

import pytest

from livefields.core.messages import (
    FieldChange,
    InitialState,
    Update,
    encode_message,
    parse_message,
)


class TestParseValid:
    def test_update(self):
        msg = parse_message('{"type": "update", "payload": {"field": "amount", "value": "250"}}')
        assert isinstance(msg, Update)
        assert msg.payload == FieldChange(field="amount", value="250")

    def test_initial_state(self):
        msg = parse_message('{"type": "initial_state", "payload": {"amount": "1", "name": "A"}}')
        assert isinstance(msg, InitialState)
        assert msg.payload == {"amount": "1", "name": "A"}

    def test_bytes_frame(self):
        msg = parse_message(b'{"type": "update", "payload": {"field": "name", "value": "Al"}}')
        assert isinstance(msg, Update)

    def test_extra_keys_ignored(self):
        raw = '{"type": "update", "payload": {"field": "a", "value": "b", "by": "x"}, "seq": 4}'
        assert isinstance(parse_message(raw), Update)

    def test_empty_initial_state(self):
        msg = parse_message('{"type": "initial_state", "payload": {}}')
        assert isinstance(msg, InitialState)
        assert msg.payload == {}


class TestParseDiscard:
    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "",
            "{",
            "[]",
            "null",
            '"update"',
            '{"payload": {"field": "a", "value": "b"}}',
            '{"type": "error", "message": "x"}',
            '{"type": "update"}',
            '{"type": "update", "payload": null}',
            '{"type": "update", "payload": {"field": "a"}}',
            '{"type": "update", "payload": {"value": "b"}}',
            '{"type": "update", "payload": {"field": "a", "value": 250}}',
            '{"type": "update", "payload": {"field": ["a"], "value": "b"}}',
            '{"type": "initial_state", "payload": ["a"]}',
            '{"type": "initial_state", "payload": {"a": 1}}',
        ],
    )
    def test_invalid_frames_return_none(self, raw):
        assert parse_message(raw) is None

    def test_discard_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="livefields.core.messages"):
            assert parse_message("garbage") is None
        assert "Discarding invalid message" in caplog.text


class TestEncode:
    def test_update_wire_shape(self):
        data = json.loads(encode_message(Update.of("amount", "250")))
        assert data == {"type": "update", "payload": {"field": "amount", "value": "250"}}

    def test_initial_state_wire_shape(self):
        data = json.loads(encode_message(InitialState(payload={"amount": "1"})))
        assert data == {"type": "initial_state", "payload": {"amount": "1"}}

    def test_messages_are_frozen(self):
        msg = Update.of("a", "b")
        with pytest.raises(Exception):
            msg.type = "initial_state"  # type: ignore[misc]
