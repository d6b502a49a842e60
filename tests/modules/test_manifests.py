"""Tests for the TestRail manifest: ensures the tool definitions are valid.

These tests import the manifest and verify structural correctness: tool names
follow conventions, required fields are present, parameter types are valid
and every tool has a TestRail endpoint.
"""

from __future__ import annotations

import pytest

from modules.testrail.client import ROUTES
from modules.testrail.manifest import MANIFEST

VALID_PARAM_TYPES = {"string", "integer", "number", "boolean", "array", "object"}


# ===================================================================
# Structure
# ===================================================================


class TestManifestStructure:
    """Structural validation for the TestRail manifest."""

    def test_module_name_is_set(self):
        assert MANIFEST.module_name == "testrail"

    def test_has_description(self):
        assert MANIFEST.description

    def test_has_tools(self):
        assert len(MANIFEST.tools) == 15

    def test_tool_names_prefixed_with_module(self):
        """All tool names must be 'testrail.action'."""
        for tool in MANIFEST.tools:
            module, _, action = tool.name.partition(".")
            assert module == "testrail", tool.name
            assert action and "." not in action, tool.name

    def test_tools_have_descriptions(self):
        for tool in MANIFEST.tools:
            assert tool.description, f"tool '{tool.name}' has empty description"

    def test_parameter_types_are_valid(self):
        for tool in MANIFEST.tools:
            for param in tool.parameters:
                assert param.type in VALID_PARAM_TYPES, (
                    f"tool '{tool.name}' param '{param.name}' has invalid type '{param.type}'"
                )

    def test_parameters_have_descriptions(self):
        for tool in MANIFEST.tools:
            for param in tool.parameters:
                assert param.description, f"tool '{tool.name}' param '{param.name}' has empty description"

    def test_no_duplicate_tool_names(self):
        names = [t.name for t in MANIFEST.tools]
        assert len(names) == len(set(names))

    def test_no_duplicate_parameter_names(self):
        for tool in MANIFEST.tools:
            param_names = [p.name for p in tool.parameters]
            assert len(param_names) == len(set(param_names)), tool.name


# ===================================================================
# Manifest vs. routes
# ===================================================================


class TestManifestRoutes:
    def test_every_tool_has_a_route(self):
        assert {t.name for t in MANIFEST.tools} == set(ROUTES)

    @pytest.mark.parametrize("tool", MANIFEST.tools, ids=lambda t: t.name)
    def test_path_params_are_required_parameters(self, tool):
        """Endpoint placeholders must be filled by required tool parameters."""
        required = {p.name for p in tool.parameters if p.required}
        assert set(ROUTES[tool.name].path_params) <= required

    def test_mutations_are_the_write_tools(self):
        mutations = {name for name, route in ROUTES.items() if route.is_mutation}
        assert mutations == {
            "testrail.add_run",
            "testrail.close_run",
            "testrail.add_result_for_case",
        }

    def test_function_schema_lists_required_parameters(self):
        tool = next(t for t in MANIFEST.tools if t.name == "testrail.add_result_for_case")
        schema = tool.to_function_schema()
        assert schema["name"] == "testrail.add_result_for_case"
        assert schema["parameters"]["type"] == "object"
        assert set(schema["parameters"]["required"]) == {"run_id", "case_id", "status_id"}

    def test_array_parameters_declare_item_type(self):
        tool = next(t for t in MANIFEST.tools if t.name == "testrail.get_tests_for_run")
        prop = tool.to_function_schema()["parameters"]["properties"]["status_id"]
        assert prop["type"] == "array"
        assert prop["items"] == {"type": "integer"}
