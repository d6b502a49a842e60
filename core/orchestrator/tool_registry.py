"""Tool registry - the immutable catalogue of tools offered to the model."""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

import structlog

from shared.errors import ConfigError
from shared.schemas.tools import PARAMETER_TYPES, ModuleManifest, ToolDefinition

logger = structlog.get_logger()


class ToolRegistry:
    """Validated, read-only view over one or more module manifests.

    Built once at startup and shared by every request; nothing mutates it
    after construction.
    """

    def __init__(self, manifests: Iterable[ModuleManifest]):
        tools: dict[str, ToolDefinition] = {}
        for manifest in manifests:
            for tool in manifest.tools:
                if tool.name in tools:
                    raise ConfigError(f"Duplicate tool name: {tool.name}")
                for param in tool.parameters:
                    if param.type not in PARAMETER_TYPES:
                        raise ConfigError(
                            f"Tool {tool.name}: parameter '{param.name}' has unsupported type '{param.type}'"
                        )
                tools[tool.name] = tool
            logger.info(
                "module_registered",
                module=manifest.module_name,
                tools=len(manifest.tools),
            )
        self._order = tuple(tools.values())
        self._tools = MappingProxyType(tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._order)

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_tools(self) -> tuple[ToolDefinition, ...]:
        """All tools in declaration order."""
        return self._order

    def function_schemas(self) -> list[dict]:
        """Convert tool definitions to function-calling declarations."""
        return [tool.to_function_schema() for tool in self._order]


def build_default_registry() -> ToolRegistry:
    """Registry for the TestRail module, constructed once per process."""
    from modules.testrail.manifest import MANIFEST

    return ToolRegistry([MANIFEST])
