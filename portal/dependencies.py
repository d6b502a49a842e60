"""FastAPI dependencies resolving the per-process services from app state."""

from __future__ import annotations

from fastapi import HTTPException, Request

from core.orchestrator.chat_orchestrator import ChatOrchestrator
from modules.testrail.client import TestRailClient


def get_orchestrator(request: Request) -> ChatOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(503, "Assistant is not initialised")
    return orchestrator


def get_testrail_client(request: Request) -> TestRailClient:
    client = getattr(request.app.state, "testrail_client", None)
    if client is None:
        raise HTTPException(503, "TestRail client is not initialised")
    return client
