"""Shared test fixtures for the assistant test suite.

Provides the registry, credentials and factory helpers so tests run without
a TestRail instance or a Gemini API key.
"""

from __future__ import annotations

import pytest

from core.orchestrator.chat_orchestrator import ChatOrchestrator
from core.orchestrator.tool_registry import ToolRegistry, build_default_registry
from modules.testrail.client import TestRailClient
from shared.schemas.messages import Credentials
from tests.fixtures import FakeProvider, RecordingTestRail


@pytest.fixture
def registry() -> ToolRegistry:
    return build_default_registry()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(url="https://acme.testrail.io", email="qa@acme.test", api_key="s3cret")


@pytest.fixture
def make_testrail():
    """Factory for a (fake server, client) pair."""

    def _make(registry: ToolRegistry, **server_kwargs) -> tuple[RecordingTestRail, TestRailClient]:
        server = RecordingTestRail(**server_kwargs)
        client = TestRailClient(registry, transport=server.transport)
        return server, client

    return _make


@pytest.fixture
def make_orchestrator(registry, make_testrail):
    """Factory for an orchestrator wired to a fake provider and fake TestRail."""

    def _make(provider: FakeProvider, **server_kwargs):
        server, client = make_testrail(registry, **server_kwargs)
        return ChatOrchestrator(provider, registry, client), server

    return _make
