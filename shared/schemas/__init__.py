"""Pydantic schemas for the assistant."""

from shared.schemas.common import ErrorResponse, HealthResponse
from shared.schemas.messages import (
    ChatRequest,
    Credentials,
    Message,
    Role,
    VerifyResponse,
)
from shared.schemas.tools import (
    ModuleManifest,
    ToolCall,
    ToolDefinition,
    ToolParameter,
    ToolResult,
)

__all__ = [
    "ChatRequest",
    "Credentials",
    "ErrorResponse",
    "HealthResponse",
    "Message",
    "ModuleManifest",
    "Role",
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolResult",
    "VerifyResponse",
]
