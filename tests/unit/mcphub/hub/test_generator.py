# -*- coding: utf-8 -*-
"""Location: ./tests/unit/mcphub/hub/test_generator.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Unit tests for the tool function generator.
"""

# Standard
from typing import Any, Dict, List, Literal, Optional
from unittest.mock import AsyncMock

# Third-Party
import pytest

# First-Party
from mcphub.hub.generator import build_tool_name, camel_case_identifier, generate_function_name, generate_tool_catalog, generate_tool_function, render_signature, schema_to_type
from mcphub.hub.schemas import ServerTool


async def _noop_invoke(name: str, params: Dict[str, Any]) -> Any:
    return None


def _exec_stub(source_text: str, hook: AsyncMock) -> Dict[str, Any]:
    namespace: Dict[str, Any] = {"__call_tool": hook, "Any": Any, "Dict": Dict, "List": List, "Literal": Literal, "Optional": Optional}
    exec(compile(source_text, "<stub>", "exec"), namespace)
    return namespace


class TestCamelCase:
    """Tests for camel_case_identifier."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("my-server", "myServer"),
            ("MY_SERVER", "myServer"),
            ("MyServer", "myserver"),
            ("  spaced out  ", "spacedOut"),
            ("test@server!", "testServer"),
            ("123server", "_123server"),
            ("café-tool", "cafTool"),
            ("", ""),
        ],
    )
    def test_conversion(self, raw, expected):
        assert camel_case_identifier(raw) == expected


class TestFunctionNames:
    """Tests for name building and collision handling."""

    def test_server_and_tool_joined(self):
        assert generate_function_name("GitHub", "search_repos") == "github_searchRepos"

    def test_collisions_get_numeric_suffix(self):
        names = set()
        assert generate_function_name("server1", "search", names) == "server1_search"
        assert generate_function_name("server1", "search", names) == "server1_search1"
        assert generate_function_name("server1", "search", names) == "server1_search2"
        assert names == {"server1_search", "server1_search1", "server1_search2"}

    def test_names_that_normalise_alike_collide(self):
        names = set()
        first = generate_function_name("my server", "do-it", names)
        second = generate_function_name("my_server", "do_it", names)
        assert (first, second) == ("myServer_doIt", "myServer_doIt1")

    def test_missing_server_name_uses_tool_only(self):
        assert build_tool_name("", "list_files") == "listFiles"

    def test_max_length_truncates_before_suffix(self):
        names = {"abcd", "abc1", "abc2"}
        assert build_tool_name("abcd", "", max_length=4, existing_names=names) == "abc3"
        assert "abc3" in names

    def test_keyword_gets_trailing_underscore(self):
        assert build_tool_name(None, "import") == "import_"


class TestSchemaTypes:
    """Tests for schema_to_type and render_signature."""

    @pytest.mark.parametrize(
        "schema,expected",
        [
            ({"type": "string"}, "str"),
            ({"type": "number"}, "float"),
            ({"type": "integer"}, "int"),
            ({"type": "boolean"}, "bool"),
            ({"type": "null"}, "None"),
            ({"enum": ["a", "b"]}, "Literal['a', 'b']"),
            ({"type": "array", "items": {"type": "string"}}, "List[str]"),
            ({"type": "array", "items": {"type": "array", "items": {"enum": [1, 2]}}}, "List[List[Literal[1, 2]]]"),
            ({"type": "object"}, "Dict[str, Any]"),
            ({}, "Any"),
            ({"type": "mystery"}, "Any"),
            ("not-a-schema", "Any"),
        ],
    )
    def test_translation(self, schema, expected):
        assert schema_to_type(schema) == expected

    def test_required_and_optional_parameters(self):
        schema = {
            "type": "object",
            "properties": {"query": {"type": "string"}, "limit": {"type": "number"}},
            "required": ["query"],
        }
        assert render_signature(schema) == "*, query: str, limit: Optional[float] = None"

    def test_non_identifier_properties_fall_back_to_kwargs(self):
        assert render_signature({"properties": {"content-type": {"type": "string"}}}) == "**params: Any"

    def test_malformed_required_is_ignored(self):
        assert render_signature({"properties": {"q": {"type": "string"}}, "required": "q"}) == "*, q: Optional[str] = None"


class TestGenerateToolFunction:
    """Tests for generate_tool_function and generate_tool_catalog."""

    def _tool(self, **overrides) -> ServerTool:
        data = {
            "id": "gh__search",
            "serverId": "gh",
            "serverName": "github",
            "name": "search",
            "description": "Search repositories.\nMore details here.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search text"},
                    "sort": {"enum": ["stars", "updated"]},
                },
                "required": ["query"],
            },
        }
        data.update(overrides)
        return ServerTool(**data)

    def test_source_text_shape(self):
        stub = generate_tool_function(self._tool(), set(), _noop_invoke)

        lines = stub.source_text.splitlines()
        assert lines[0] == "async def github_search(*, query: str, sort: Optional[Literal['stars', 'updated']] = None) -> Any:"
        assert '    """Search repositories.' in lines
        assert "        query (str): Search text" in lines
        assert "        sort (Literal['stars', 'updated'], optional):" in lines
        assert lines[-1] == '    return await __call_tool("github_search", locals())'
        assert "More details here." not in stub.source_text

    def test_missing_description_uses_fallback(self):
        stub = generate_tool_function(self._tool(description=None), set(), _noop_invoke)
        assert "Call 'search' on server 'github'." in stub.source_text

    def test_output_schema_sets_return_type(self):
        stub = generate_tool_function(self._tool(outputSchema={"type": "array", "items": {"type": "string"}}), set(), _noop_invoke)
        assert stub.returns == "List[str]"
        assert stub.source_text.splitlines()[0].endswith("-> List[str]:")

    @pytest.mark.asyncio
    async def test_source_text_is_valid_python(self):
        stub = generate_tool_function(self._tool(), set(), _noop_invoke)
        hook = AsyncMock(return_value={"ok": True})

        namespace = _exec_stub(stub.source_text, hook)
        result = await namespace["github_search"](query="mcp")

        assert result == {"ok": True}
        hook.assert_awaited_once_with("github_search", {"query": "mcp", "sort": None})

    @pytest.mark.asyncio
    async def test_kwargs_stub_forwards_params(self):
        tool = self._tool(inputSchema={"type": "object", "properties": {"x-y": {"type": "string"}}})
        stub = generate_tool_function(tool, set(), _noop_invoke)
        hook = AsyncMock(return_value=None)

        namespace = _exec_stub(stub.source_text, hook)
        await namespace["github_search"](**{"x-y": "1"})

        hook.assert_awaited_once_with("github_search", {"x-y": "1"})

    @pytest.mark.asyncio
    async def test_no_parameters_stub(self):
        stub = generate_tool_function(self._tool(inputSchema={"type": "object"}), set(), _noop_invoke)
        hook = AsyncMock(return_value=1)

        namespace = _exec_stub(stub.source_text, hook)
        assert await namespace["github_search"]() == 1
        hook.assert_awaited_once_with("github_search", {})

    @pytest.mark.asyncio
    async def test_call_closure_invokes_with_resolved_name(self):
        invoke = AsyncMock(return_value="done")
        names = {"github_search"}
        stub = generate_tool_function(self._tool(), names, invoke)

        assert stub.function_name == "github_search1"
        assert await stub.call({"query": "x"}) == "done"
        invoke.assert_awaited_once_with("github_search1", {"query": "x"})

    def test_catalog_is_deterministic_and_unique(self):
        tools = [self._tool(), self._tool(serverId="gh2"), self._tool(name="list")]
        first = generate_tool_catalog(tools, _noop_invoke)
        second = generate_tool_catalog(tools, _noop_invoke)

        assert [t.function_name for t in first] == ["github_search", "github_search1", "github_list"]
        assert [t.source_text for t in first] == [t.source_text for t in second]
        assert first[1].server_id == "gh2"

    def test_catalog_skips_names_visible_in_sandbox(self):
        tools = [
            self._tool(id="s__parallel", serverId="s", serverName="", name="parallel"),
            self._tool(id="s__len", serverId="s", serverName="", name="len"),
            self._tool(id="s__print", serverId="s", serverName="", name="print"),
            self._tool(id="s__fetch", serverId="s", serverName="", name="fetch"),
        ]

        catalog = generate_tool_catalog(tools, _noop_invoke)

        assert [t.function_name for t in catalog] == ["parallel1", "len1", "print1", "fetch"]
        assert catalog[0].source_text.startswith("async def parallel1(")
        assert 'return await __call_tool("parallel1", locals())' in catalog[0].source_text
