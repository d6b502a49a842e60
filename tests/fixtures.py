"""Fakes and canned TestRail payloads shared by the test suite."""

from __future__ import annotations

import asyncio
import json

import httpx

from core.llm_router.providers.base import LLMProvider, LLMResponse
from shared.schemas.tools import ToolCall

PROJECTS_RESPONSE = {
    "offset": 0,
    "limit": 250,
    "size": 2,
    "projects": [
        {"id": 1, "name": "Checkout", "is_completed": False},
        {"id": 2, "name": "Mobile App", "is_completed": False},
    ],
}

RUNS_RESPONSE = {
    "offset": 0,
    "limit": 250,
    "size": 1,
    "runs": [{"id": 81, "name": "Release 4.2 regression", "passed_count": 40, "failed_count": 2}],
}

ADD_RESULT_RESPONSE = {"id": 5001, "test_id": 9001, "status_id": 5, "comment": "Crashes on submit"}


async def collect(events) -> list:
    """Drain an async iterator into a list."""
    return [event async for event in events]


def text_response(text: str | None) -> LLMResponse:
    return LLMResponse(content=text, stop_reason="end_turn")


def tool_response(*calls: tuple[str, dict]) -> LLMResponse:
    return LLMResponse(
        tool_calls=[ToolCall(tool_name=name, arguments=args) for name, args in calls],
        stop_reason="tool_use",
    )


class FakeProvider(LLMProvider):
    """Scripted LLM provider recording every request it receives."""

    def __init__(
        self,
        responses: list[LLMResponse] | None = None,
        stream_chunks: list[str] | None = None,
        chat_error: Exception | None = None,
        stream_error: Exception | None = None,
        block_stream: asyncio.Event | None = None,
    ):
        self.responses = list(responses or [])
        self.stream_chunks = list(stream_chunks or [])
        self.chat_error = chat_error
        self.stream_error = stream_error
        self.block_stream = block_stream
        self.chat_calls: list[list[dict]] = []
        self.stream_calls: list[list[dict]] = []
        self.tools: list[dict] | None = None
        self.stream_closed = False

    async def chat(self, messages, tools=None):
        self.chat_calls.append(list(messages))
        self.tools = tools
        if self.chat_error:
            raise self.chat_error
        return self.responses.pop(0)

    async def chat_stream(self, messages, tools=None):
        self.stream_calls.append(list(messages))
        try:
            for chunk in self.stream_chunks:
                yield chunk
            if self.stream_error:
                raise self.stream_error
            if self.block_stream:
                await self.block_stream.wait()
        finally:
            self.stream_closed = True


class RecordingTestRail:
    """httpx MockTransport handler standing in for a TestRail server."""

    def __init__(self, status_code: int = 200, payload=None, body: str | None = None):
        self.status_code = status_code
        self.payload = payload
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)
