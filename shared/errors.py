"""Error taxonomy shared by the adapter, orchestrator and transport.

Every error raised inside a chat turn derives from ``AssistantError`` so the
orchestrator can turn it into a single assistant message. Cancellation is not
part of this hierarchy: it travels as ``asyncio.CancelledError``.
"""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for errors surfaced to the user inside a chat turn."""


class ConfigError(AssistantError):
    """Missing or invalid configuration (credentials, API key, catalogue)."""


class UnknownTool(AssistantError):
    """The model asked for a tool that is not in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"The tool '{name}' is not available.")


class UpstreamError(AssistantError):
    """TestRail answered with a non-2xx status or could not be reached.

    ``status_code`` is ``None`` when no HTTP response was received at all.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class TransportError(AssistantError):
    """A stream line could not be encoded or decoded."""
