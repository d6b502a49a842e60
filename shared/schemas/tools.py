"""Tool and module manifest schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

PARAMETER_TYPES = {"string", "integer", "number", "boolean", "array", "object"}


class ToolParameter(BaseModel):
    """Parameter definition for a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # string, integer, boolean, number, array, object
    description: str
    required: bool = True
    enum: list[str] | None = None
    items: str | None = None  # element type for arrays

    def to_schema(self) -> dict:
        """JSON-Schema fragment for this parameter."""
        prop: dict = {"type": self.type, "description": self.description}
        if self.enum:
            prop["enum"] = list(self.enum)
        if self.type == "array":
            prop["items"] = {"type": self.items or "string"}
        return prop


class ToolDefinition(BaseModel):
    """Definition of a single tool exposed by a module."""

    model_config = ConfigDict(frozen=True)

    name: str  # e.g. "testrail.get_projects"
    description: str
    parameters: list[ToolParameter]

    def to_function_schema(self) -> dict:
        """Function-calling declaration: name, description and parameter schema."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {p.name: p.to_schema() for p in self.parameters},
                "required": [p.name for p in self.parameters if p.required],
            },
        }


class ModuleManifest(BaseModel):
    """Manifest describing a module and its tools."""

    model_config = ConfigDict(frozen=True)

    module_name: str
    description: str
    tools: list[ToolDefinition]


class ToolCall(BaseModel):
    """A tool call request."""

    tool_name: str
    arguments: dict[str, Any] = {}


class ToolResult(BaseModel):
    """Result from a tool execution."""

    tool_name: str
    success: bool
    result: Any = None
    error: str | None = None
