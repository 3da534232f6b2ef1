# -*- coding: utf-8 -*-
"""Location: ./tests/unit/mcphub/hub/test_server.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Unit tests for the hub MCP server and its ``search``/``exec`` handlers.
"""

# Standard
from unittest.mock import AsyncMock

# Third-Party
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, METHOD_NOT_FOUND
import orjson
import pytest

# First-Party
from mcphub.hub.schemas import ExecOutput
from mcphub.hub.server import HubServer


def _payload(result):
    assert len(result.content) == 1
    return orjson.loads(result.content[0].text)


@pytest.fixture
def hub(directory, make_tool):
    directory.tools = [
        make_tool("server1", "searching"),
        make_tool("server1", "search_more"),
        make_tool("server1", "search", "Search the index", {"query": {"type": "string"}}, ["query"]),
    ]
    return HubServer(directory)


class TestListTools:
    """Tests for the meta-tool definitions."""

    def test_definitions(self, hub):
        tools = {tool.name: tool for tool in hub.list_tools()}

        assert set(tools) == {"search", "exec"}
        assert tools["search"].inputSchema["required"] == ["query"]
        assert tools["exec"].inputSchema["required"] == ["code"]


class TestSearch:
    """Tests for handle_search."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [None, {}, {"query": 5}, {"query": ["a"]}])
    async def test_query_required(self, hub, arguments):
        with pytest.raises(McpError) as exc_info:
            await hub.handle_search(arguments)

        assert exc_info.value.error.code == INVALID_PARAMS
        assert exc_info.value.error.message == "query parameter is required and must be a string"

    @pytest.mark.asyncio
    async def test_exact_match_first(self, hub):
        payload = _payload(await hub.handle_search({"query": "search", "limit": 1}))

        assert payload["total"] == 3
        assert payload["tools"].startswith("async def server1_search(*, query: str) -> Any:")

    @pytest.mark.asyncio
    async def test_empty_query_lists_catalog(self, hub):
        payload = _payload(await hub.handle_search({"query": ""}))
        assert payload["total"] == 3
        assert payload["tools"].count("async def ") == 3

    @pytest.mark.asyncio
    async def test_catalog_cached_between_calls(self, hub, directory):
        await hub.handle_search({"query": "search"})
        await hub.handle_search({"query": "more"})
        assert directory.list_calls == 1

        hub.invalidate_cache()
        await hub.handle_search({"query": "search"})
        assert directory.list_calls == 2


class TestExec:
    """Tests for handle_exec."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [None, {}, {"code": None}, {"code": 1}])
    async def test_code_required(self, hub, arguments):
        with pytest.raises(McpError) as exc_info:
            await hub.handle_exec(arguments)

        assert exc_info.value.error.code == INVALID_PARAMS
        assert exc_info.value.error.message == "code parameter is required and must be a string"

    @pytest.mark.asyncio
    async def test_success_payload(self, directory):
        runtime = AsyncMock()
        runtime.execute.return_value = ExecOutput.success({"n": 2}, logs=["[log] hi"])
        hub = HubServer(directory, runtime=runtime)

        result = await hub.handle_exec({"code": "return {'n': 2}"})

        assert result.isError is False
        assert _payload(result) == {"result": {"n": 2}, "logs": ["[log] hi"]}
        code, tools = runtime.execute.await_args.args
        assert code == "return {'n': 2}"
        assert tools == []

    @pytest.mark.asyncio
    async def test_failure_payload(self, directory):
        runtime = AsyncMock()
        runtime.execute.return_value = ExecOutput.failure("Execution timed out after 60000ms")
        hub = HubServer(directory, runtime=runtime)

        result = await hub.handle_exec({"code": "while True:\n    pass"})

        assert result.isError is True
        assert _payload(result) == {"error": "Execution timed out after 60000ms", "isError": True}

    @pytest.mark.asyncio
    async def test_search_then_exec(self, hub, directory, text_result):
        async def handler(params):
            return text_result({"hits": [params["query"]]})

        directory.on("server1-id__search", handler)

        search = _payload(await hub.handle_search({"query": "search", "limit": 1}))
        assert "server1_search" in search["tools"]

        result = await hub.handle_exec({"code": "found = await server1_search(query='mcp')\nreturn found['hits']"})

        assert _payload(result) == {"result": ["mcp"]}
        assert directory.list_calls == 1


class TestDispatch:
    """Tests for call_tool dispatch."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, hub):
        with pytest.raises(McpError) as exc_info:
            await hub.call_tool("describe", {})
        assert exc_info.value.error.code == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_routes_to_handlers(self, hub):
        hub.handle_search = AsyncMock(return_value="searched")
        hub.handle_exec = AsyncMock(return_value="executed")

        assert await hub.call_tool("search", {"query": "x"}) == "searched"
        assert await hub.call_tool("exec", {"code": "pass"}) == "executed"
