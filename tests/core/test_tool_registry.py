"""Tests for the tool registry."""

from __future__ import annotations

import pytest

from core.orchestrator.tool_registry import ToolRegistry
from shared.errors import ConfigError
from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter


def _manifest(name: str, *tools: ToolDefinition) -> ModuleManifest:
    return ModuleManifest(module_name=name, description=f"{name} tools", tools=list(tools))


def _tool(name: str, *params: ToolParameter) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"Does {name}", parameters=list(params))


class TestToolRegistry:
    def test_default_registry_holds_testrail_tools(self, registry):
        assert len(registry) == 15
        assert "testrail.get_projects" in registry
        assert "testrail.delete_project" not in registry

    def test_declaration_order_is_kept(self):
        reg = ToolRegistry([_manifest("demo", _tool("demo.b"), _tool("demo.a"))])
        assert [t.name for t in reg.list_tools()] == ["demo.b", "demo.a"]

    def test_duplicate_names_are_rejected(self):
        with pytest.raises(ConfigError, match="Duplicate tool name: demo.a"):
            ToolRegistry([
                _manifest("demo", _tool("demo.a")),
                _manifest("other", _tool("demo.a")),
            ])

    def test_unsupported_parameter_type_is_rejected(self):
        bad = _tool("demo.a", ToolParameter(name="when", type="date", description="d"))
        with pytest.raises(ConfigError, match="unsupported type 'date'"):
            ToolRegistry([_manifest("demo", bad)])

    def test_get(self, registry):
        assert registry.get("testrail.get_run").name == "testrail.get_run"
        assert registry.get("testrail.nope") is None

    def test_function_schemas(self):
        reg = ToolRegistry([
            _manifest(
                "demo",
                _tool(
                    "demo.a",
                    ToolParameter(name="id", type="integer", description="ID"),
                    ToolParameter(name="tags", type="array", description="Tags", required=False),
                ),
            )
        ])
        assert reg.function_schemas() == [
            {
                "name": "demo.a",
                "description": "Does demo.a",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer", "description": "ID"},
                        "tags": {"type": "array", "description": "Tags", "items": {"type": "string"}},
                    },
                    "required": ["id"],
                },
            }
        ]

    def test_tools_cannot_be_reassigned(self, registry):
        with pytest.raises(TypeError):
            registry._tools["testrail.extra"] = None
