"""Tests for NDJSON framing of chat events."""

from __future__ import annotations

import json

import pytest

from shared.errors import TransportError
from shared.schemas.messages import Message, Role
from shared.streaming import decode_line, encode_message, iter_messages, ndjson_stream


async def _chunks(*parts):
    for part in parts:
        yield part


async def _decode(*parts) -> list[Message]:
    return [m async for m in iter_messages(_chunks(*parts))]


# ---------------------------------------------------------------------------
# Single lines
# ---------------------------------------------------------------------------


class TestLines:
    @pytest.mark.parametrize("role", list(Role))
    def test_each_role_survives_the_wire(self, role):
        message = Message(role=role, text='Run "Release 4.2"\nhas 2 failures')
        line = encode_message(message)
        assert line.endswith(b"\n")
        assert line.count(b"\n") == 1
        assert decode_line(line.rstrip(b"\n")) == message

    def test_wire_shape(self):
        line = encode_message(Message(role=Role.STATUS, text="Fetching..."))
        assert json.loads(line) == {"role": "status", "text": "Fetching..."}

    @pytest.mark.parametrize("legacy,role", [("model", Role.ASSISTANT), ("system", Role.STATUS)])
    def test_legacy_role_names(self, legacy, role):
        assert decode_line(json.dumps({"role": legacy, "text": "x"})).role == role

    def test_invalid_json(self):
        with pytest.raises(TransportError, match="Invalid JSON"):
            decode_line('{"role": "assistant", "text": ')

    def test_unknown_role(self):
        with pytest.raises(TransportError, match="not a chat message"):
            decode_line('{"role": "narrator", "text": "x"}')


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class TestStreams:
    @pytest.mark.asyncio
    async def test_ndjson_stream_yields_one_line_per_event(self):
        events = [
            Message(role=Role.STATUS, text="Fetching data for get_projects from TestRail..."),
            Message(role=Role.ASSISTANT, text="Hello"),
        ]
        lines = [line async for line in ndjson_stream(_chunks(*events))]
        assert lines == [encode_message(e) for e in events]

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(self):
        wire = (
            encode_message(Message(role=Role.STATUS, text="Fetching..."))
            + encode_message(Message(role=Role.ASSISTANT, text="Café results"))
        )
        # split inside the two-byte "é"
        cut = wire.index("é".encode()) + 1
        messages = await _decode(wire[:7], wire[7:cut], wire[cut:])
        assert messages == [
            Message(role=Role.STATUS, text="Fetching..."),
            Message(role=Role.ASSISTANT, text="Café results"),
        ]

    @pytest.mark.asyncio
    async def test_malformed_and_blank_lines_are_skipped(self):
        messages = await _decode(
            b'{"role": "assistant", "text": "one"}\n',
            b"\n",
            b"not json\n",
            b'{"role": "assistant", "text": "two"}\n',
        )
        assert [m.text for m in messages] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_trailing_line_without_newline(self):
        messages = await _decode('{"role": "user", "text": "hi"}')
        assert messages == [Message(role=Role.USER, text="hi")]

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        assert await _decode() == []
