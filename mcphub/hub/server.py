# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/server.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Hub MCP Server.

MCP server exposing two meta-tools over a large upstream tool directory:

- ``search``: find tools by keyword and return their Python stub declarations
- ``exec``: run a Python script that calls those stubs, in a sandbox worker

Request-shape violations are raised as ``McpError``; everything that goes
wrong while running a script is reported inside the ``exec`` result.
"""

# Standard
from typing import Any, Dict, List, Optional

# Third-Party
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import CallToolResult, ErrorData, INVALID_PARAMS, METHOD_NOT_FOUND, TextContent, Tool
import orjson

# First-Party
from mcphub.config import settings
from mcphub.hub.catalog import ToolCatalog
from mcphub.hub.directory import CatalogCache, ToolDirectory
from mcphub.hub.runtime import ExecutionRuntime
from mcphub.hub.search import search_tools
from mcphub.services.logging_service import LoggingService

logger = LoggingService().get_logger(__name__)

SEARCH_TOOL = "search"
EXEC_TOOL = "exec"

SEARCH_DESCRIPTION = (
    "Search the available tools by keyword. Pass a comma-separated list of keywords; a tool matches when any "
    "keyword appears in its name, server, description or signature. Returns the Python declarations of the best "
    "matches, ready to be called from exec."
)

EXEC_DESCRIPTION = (
    "Run Python code that calls tools found with search. The code is the body of an async function: call tools "
    "with `await server_tool(arg=value)`, run calls concurrently with `await parallel(a(), b())` or "
    "`await settle(a(), b())`, log with `console.log(...)` or `print(...)`, and `return` the value you want back. "
    "Only an explicit return produces a result."
)


def _text_result(payload: Dict[str, Any], is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=orjson.dumps(payload).decode())], isError=is_error)


def _invalid_params(message: str) -> McpError:
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))


class HubServer:
    """MCP server publishing the ``search`` and ``exec`` meta-tools.

    Examples:
        >>> from unittest.mock import AsyncMock
        >>> hub = HubServer(AsyncMock())
        >>> [tool.name for tool in hub.list_tools()]
        ['search', 'exec']
    """

    def __init__(
        self,
        directory: ToolDirectory,
        cache: Optional[CatalogCache] = None,
        runtime: Optional[ExecutionRuntime] = None,
        name: Optional[str] = None,
    ):
        """Initialize the hub.

        Args:
            directory: Upstream tool directory.
            cache: Catalog snapshot store.
            runtime: Execution runtime; built on the catalog's bridge by default.
            name: Server name for the MCP handshake, defaults to ``settings.app_name``.
        """
        self.catalog = ToolCatalog(directory, cache)
        self.runtime = runtime or ExecutionRuntime(self.catalog.bridge)
        self.server = Server(name or settings.app_name)
        self._register_handlers()

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
            return await self.call_tool(name, arguments)

    def list_tools(self) -> List[Tool]:
        """Definitions of the meta-tools.

        Returns:
            The ``search`` and ``exec`` tools.
        """
        return [
            Tool(
                name=SEARCH_TOOL,
                description=SEARCH_DESCRIPTION,
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Comma-separated keywords, e.g. 'github,issues'"},
                        "limit": {
                            "type": "integer",
                            "minimum": 1,
                            "maximum": settings.hub_search_max_limit,
                            "default": settings.hub_search_default_limit,
                            "description": "Maximum number of tools to return",
                        },
                    },
                    "required": ["query"],
                },
            ),
            Tool(
                name=EXEC_TOOL,
                description=EXEC_DESCRIPTION,
                inputSchema={
                    "type": "object",
                    "properties": {
                        "code": {"type": "string", "description": "Python statements to run as the body of an async function"},
                    },
                    "required": ["code"],
                },
            ),
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """Dispatch a meta-tool call.

        Args:
            name: Tool name.
            arguments: Tool arguments.

        Returns:
            The tool result.

        Raises:
            McpError: If the tool is unknown or its arguments are invalid.
        """
        if name == SEARCH_TOOL:
            return await self.handle_search(arguments)
        if name == EXEC_TOOL:
            return await self.handle_exec(arguments)
        raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

    async def handle_search(self, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """Run a catalog search.

        Args:
            arguments: ``query`` and optional ``limit``.

        Returns:
            JSON text with ``tools`` and ``total``.

        Raises:
            McpError: If ``query`` is missing or not a string.
        """
        arguments = arguments or {}
        query = arguments.get("query")
        if not isinstance(query, str):
            raise _invalid_params("query parameter is required and must be a string")

        tools = await self.catalog.fetch_tools()
        result = search_tools(tools, query, arguments.get("limit"))
        logger.debug(f"Search {query!r} matched {result.total} tool(s)")
        return _text_result(result.model_dump(by_alias=True))

    async def handle_exec(self, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """Run a script against the current catalog.

        Args:
            arguments: ``code``.

        Returns:
            JSON text of the execution output; ``isError`` mirrors the output.

        Raises:
            McpError: If ``code`` is missing or not a string.
        """
        arguments = arguments or {}
        code = arguments.get("code")
        if not isinstance(code, str):
            raise _invalid_params("code parameter is required and must be a string")

        tools = await self.catalog.fetch_tools()
        output = await self.runtime.execute(code, tools)
        return _text_result(output.to_payload(), is_error=bool(output.is_error))

    def invalidate_cache(self) -> None:
        """Force the next call to regenerate the tool catalog."""
        self.catalog.invalidate_cache()

    async def run_stdio(self) -> None:
        """Serve the hub over stdio until the client disconnects."""
        async with stdio_server() as (read_stream, write_stream):
            logger.info(f"{self.server.name} serving over stdio")
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
