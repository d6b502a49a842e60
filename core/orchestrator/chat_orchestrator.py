"""Chat orchestrator - drives one user turn through model, tool and narration.

Each turn is an explicit state machine::

    AWAITING_MODEL -> AWAITING_TOOL -> AWAITING_MODEL_FOLLOWUP -> STREAMING -> DONE
    AWAITING_MODEL -> STREAMING -> DONE

Any state may move to FAILED. Cancellation also ends in FAILED, with
``Turn.cancelled`` set so callers can tell it apart from an error.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from core.llm_router.providers.base import LLMProvider
from core.orchestrator.context_builder import ContextBuilder
from core.orchestrator.tool_registry import ToolRegistry
from modules.testrail.client import TestRailClient
from shared.errors import AssistantError, UnknownTool
from shared.schemas.messages import Credentials, Message, Role
from shared.schemas.tools import ToolCall, ToolResult

logger = structlog.get_logger()

NO_RESPONSE_TEXT = "I don't have a response for that."


class TurnState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOL = "awaiting_tool"
    AWAITING_MODEL_FOLLOWUP = "awaiting_model_followup"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.AWAITING_MODEL: frozenset(
        {TurnState.AWAITING_TOOL, TurnState.STREAMING, TurnState.FAILED}
    ),
    TurnState.AWAITING_TOOL: frozenset(
        {TurnState.AWAITING_MODEL_FOLLOWUP, TurnState.FAILED}
    ),
    TurnState.AWAITING_MODEL_FOLLOWUP: frozenset(
        {TurnState.STREAMING, TurnState.FAILED}
    ),
    TurnState.STREAMING: frozenset({TurnState.DONE, TurnState.FAILED}),
    TurnState.DONE: frozenset(),
    TurnState.FAILED: frozenset(),
}


@dataclass
class Turn:
    """Bookkeeping for one user message through to its terminal state."""

    message: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: TurnState = TurnState.AWAITING_MODEL
    tool_call: ToolCall | None = None
    tool_result: ToolResult | None = None
    error: str | None = None
    cancelled: bool = False

    @property
    def finished(self) -> bool:
        return self.state in (TurnState.DONE, TurnState.FAILED)

    def advance(self, state: TurnState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal turn transition {self.state.value} -> {state.value}")
        self.state = state

    def fail(self, error: str, cancelled: bool = False) -> None:
        if self.finished:
            return
        self.error = error
        self.cancelled = cancelled
        self.state = TurnState.FAILED


def failure_text(exc: BaseException) -> str:
    """The single assistant message shown when a turn fails."""
    if isinstance(exc, UnknownTool):
        return f"Sorry, I can't do that. {exc}"
    detail = str(exc) or type(exc).__name__
    return f"Sorry, I've run into an issue: {detail}"


class ChatOrchestrator:
    """Runs chat turns against the model and the TestRail client.

    Holds no per-request state; one instance serves every request.
    """

    def __init__(
        self,
        provider: LLMProvider,
        registry: ToolRegistry,
        client: TestRailClient,
        context_builder: ContextBuilder | None = None,
    ):
        self.provider = provider
        self.registry = registry
        self.client = client
        self.context_builder = context_builder or ContextBuilder()

    async def run_turn(
        self,
        message: str,
        history: Sequence[Message],
        credentials: Credentials | Mapping[str, Any] | None,
        turn: Turn | None = None,
    ) -> AsyncIterator[Message]:
        """Yield the status and assistant events of one chat turn.

        Errors end the turn with one assistant message describing them.
        Cancellation is re-raised without emitting anything.
        """
        turn = turn or Turn(message=message)
        log = logger.bind(turn_id=turn.id)
        log.info("chat_turn_started", history=len(history))

        try:
            async with aclosing(self._drive(turn, history, credentials, log)) as events:
                async for event in events:
                    yield event
        except (asyncio.CancelledError, GeneratorExit):
            turn.fail("cancelled", cancelled=True)
            log.info("chat_turn_cancelled")
            raise
        except Exception as e:
            turn.fail(str(e))
            log.error(
                "chat_turn_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=not isinstance(e, AssistantError),
            )
            yield Message(role=Role.ASSISTANT, text=failure_text(e))
        else:
            log.info(
                "chat_turn_completed",
                tool=turn.tool_call.tool_name if turn.tool_call else None,
            )

    async def _drive(
        self,
        turn: Turn,
        history: Sequence[Message],
        credentials: Credentials | Mapping[str, Any] | None,
        log,
    ) -> AsyncIterator[Message]:
        context = self.context_builder.build(history, turn.message)
        tools = self.registry.function_schemas()

        response = await self.provider.chat(context, tools=tools)

        if not response.tool_calls:
            turn.advance(TurnState.STREAMING)
            yield Message(role=Role.ASSISTANT, text=response.content or NO_RESPONSE_TEXT)
            turn.advance(TurnState.DONE)
            return

        # Only the first requested call is honored
        tool_call = response.tool_calls[0]
        if len(response.tool_calls) > 1:
            log.warning(
                "extra_tool_calls_ignored",
                ignored=[c.tool_name for c in response.tool_calls[1:]],
            )
        turn.tool_call = tool_call
        turn.advance(TurnState.AWAITING_TOOL)

        if tool_call.tool_name not in self.registry:
            raise UnknownTool(tool_call.tool_name)

        yield Message(role=Role.STATUS, text=self._status_text(tool_call.tool_name))

        log.info("tool_call", tool=tool_call.tool_name, arguments=tool_call.arguments)
        try:
            result = await self.client.invoke(
                tool_call.tool_name, tool_call.arguments, credentials
            )
        except AssistantError as e:
            turn.tool_result = ToolResult(
                tool_name=tool_call.tool_name, success=False, error=str(e)
            )
            raise
        turn.tool_result = ToolResult(
            tool_name=tool_call.tool_name, success=True, result=result
        )
        turn.advance(TurnState.AWAITING_MODEL_FOLLOWUP)

        context.append({
            "role": "tool_call",
            "name": tool_call.tool_name,
            "arguments": tool_call.arguments,
        })
        context.append({
            "role": "tool_result",
            "name": tool_call.tool_name,
            "content": result,
        })

        streamed = False
        async with aclosing(self.provider.chat_stream(context, tools=tools)) as stream:
            async for text in stream:
                if not text:
                    continue
                if not streamed:
                    turn.advance(TurnState.STREAMING)
                    streamed = True
                yield Message(role=Role.ASSISTANT, text=text)

        if not streamed:
            turn.advance(TurnState.STREAMING)
            yield Message(role=Role.ASSISTANT, text=NO_RESPONSE_TEXT)
        turn.advance(TurnState.DONE)

    def _status_text(self, tool_name: str) -> str:
        short_name = tool_name.split(".")[-1]
        if self.client.route_for(tool_name).is_mutation:
            return f"Sending {short_name} to TestRail..."
        return f"Fetching data for {short_name} from TestRail..."
