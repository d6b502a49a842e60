"""Web portal: FastAPI app exposing the TestRail chat API."""

from __future__ import annotations

import logging

import structlog
from fastapi import FastAPI

from core.llm_router.providers.google import GoogleProvider
from core.orchestrator.chat_orchestrator import ChatOrchestrator
from core.orchestrator.tool_registry import build_default_registry
from modules.testrail.client import TestRailClient
from portal.routers import chat
from shared.config import get_settings
from shared.errors import ConfigError
from shared.schemas.common import HealthResponse

settings = get_settings()

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level.upper())
    ),
)

logger = structlog.get_logger()

app = FastAPI(title="TestRail Assistant", version="1.0.0")

# --------------- Routers ---------------

app.include_router(chat.router)


@app.on_event("startup")
async def startup() -> None:
    """Build the process-wide registry, TestRail client and orchestrator."""
    registry = build_default_registry()
    testrail_client = TestRailClient(registry, timeout=settings.testrail_timeout)
    try:
        provider = GoogleProvider(
            api_key=settings.google_api_key,
            model=settings.default_model,
            max_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
        )
    except ConfigError as e:
        logger.error("portal_config_error", error=str(e))
        raise

    app.state.testrail_client = testrail_client
    app.state.orchestrator = ChatOrchestrator(provider, registry, testrail_client)
    logger.info(
        "portal_startup_complete",
        model=settings.default_model,
        tools=len(registry),
    )


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")
