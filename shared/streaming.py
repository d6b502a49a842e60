"""Newline-delimited JSON framing for streamed chat events.

Every event is written as one complete JSON object followed by ``\\n``.
Readers split the byte stream on newlines and decode each line on its own,
so a malformed line costs that line only.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator

import structlog
from pydantic import ValidationError

from shared.errors import TransportError
from shared.schemas.messages import Message

logger = structlog.get_logger()

MEDIA_TYPE = "text/plain; charset=utf-8"


def encode_message(message: Message) -> bytes:
    """Serialize a message as one NDJSON line."""
    return message.model_dump_json().encode("utf-8") + b"\n"


def decode_line(line: str | bytes) -> Message:
    """Parse one NDJSON line into a Message.

    Raises:
        TransportError: If the line is not valid JSON or not a Message.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise TransportError(f"Invalid JSON line: {e}") from e
    try:
        return Message.model_validate(data)
    except ValidationError as e:
        raise TransportError(f"Line is not a chat message: {e.error_count()} error(s)") from e


async def ndjson_stream(events: AsyncIterable[Message]) -> AsyncIterator[bytes]:
    """Turn chat events into wire lines, one yield per complete line."""
    async for event in events:
        yield encode_message(event)


async def iter_messages(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[Message]:
    """Decode Messages from an arbitrarily chunked NDJSON byte stream.

    Partial lines are buffered until their newline arrives. Blank lines are
    ignored and undecodable lines are logged and skipped.
    """
    buffer = ""
    # Multi-byte characters may be split across chunks
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        if isinstance(chunk, bytes):
            chunk = decoder.decode(chunk)
        buffer += chunk
        *lines, buffer = buffer.split("\n")
        for line in lines:
            message = _decode_or_skip(line)
            if message is not None:
                yield message

    # Server closed without a final newline
    buffer += decoder.decode(b"", final=True)
    message = _decode_or_skip(buffer)
    if message is not None:
        yield message


def _decode_or_skip(line: str) -> Message | None:
    if not line.strip():
        return None
    try:
        return decode_line(line)
    except TransportError as e:
        logger.warning("stream_line_invalid", error=str(e), line=line[:200])
        return None
