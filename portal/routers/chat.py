"""Chat endpoints: streamed chat turns and TestRail credential verification."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from core.orchestrator.chat_orchestrator import ChatOrchestrator
from modules.testrail.client import TestRailClient
from portal.dependencies import get_orchestrator, get_testrail_client
from shared.errors import AssistantError
from shared.schemas.common import ErrorResponse
from shared.schemas.messages import ChatRequest, VerifyResponse
from shared.streaming import MEDIA_TYPE, ndjson_stream

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
async def chat(
    body: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Run one chat turn and stream its events as newline-delimited JSON.

    The body has no end-of-stream marker; the client treats connection close
    as completion. Failures arrive as a final assistant line, so the status
    code is always 200 once streaming starts.
    """
    events = orchestrator.run_turn(body.message, body.history, body.settings)
    return StreamingResponse(
        ndjson_stream(events),
        media_type=MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Content-Type-Options": "nosniff"},
    )


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={400: {"model": ErrorResponse}},
)
async def verify(
    settings: dict[str, Any] | None = Body(default=None),
    client: TestRailClient = Depends(get_testrail_client),
):
    """Check that the TestRail credentials reach an instance and authenticate."""
    try:
        await client.verify(settings)
    except AssistantError as e:
        logger.warning("verification_failed", error=str(e))
        return JSONResponse(status_code=400, content={"error": str(e)})
    return VerifyResponse()
