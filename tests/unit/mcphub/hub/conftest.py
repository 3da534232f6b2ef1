# -*- coding: utf-8 -*-
"""Location: ./tests/unit/mcphub/hub/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared fixtures for hub tests: an in-memory tool directory and helpers to
build tool descriptors and MCP call results.
"""

# Standard
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

# Third-Party
from mcp.types import CallToolResult, TextContent
import orjson
import pytest

# First-Party
from mcphub.hub.schemas import ServerTool

Handler = Callable[[Dict[str, Any]], Awaitable[CallToolResult]]


def _text_result(value: Any) -> CallToolResult:
    text = value if isinstance(value, str) else orjson.dumps(value).decode()
    return CallToolResult(content=[TextContent(type="text", text=text)])


def _error_result(message: Optional[str] = None) -> CallToolResult:
    content = [TextContent(type="text", text=message)] if message is not None else []
    return CallToolResult(content=content, isError=True)


def _make_tool(server_name: str, name: str, description: Optional[str] = None, properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None, server_id: Optional[str] = None) -> ServerTool:
    server_id = server_id or f"{server_name}-id"
    schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return ServerTool(id=f"{server_id}__{name}", serverId=server_id, serverName=server_name, name=name, description=description, inputSchema=schema)


class FakeDirectory:
    """In-memory ToolDirectory recording every interaction."""

    def __init__(self, tools: Optional[List[ServerTool]] = None):
        self.tools: List[ServerTool] = list(tools or [])
        self.handlers: Dict[str, Handler] = {}
        self.list_calls = 0
        self.calls: List[Tuple[str, Dict[str, Any], Optional[str]]] = []
        self.aborted: List[str] = []

    def on(self, tool_id: str, handler: Handler) -> None:
        self.handlers[tool_id] = handler

    async def list_all_active_server_tools(self) -> List[ServerTool]:
        self.list_calls += 1
        return list(self.tools)

    async def call_tool_by_id(self, tool_id: str, params: Dict[str, Any], call_id: Optional[str] = None) -> CallToolResult:
        self.calls.append((tool_id, params, call_id))
        handler = self.handlers.get(tool_id)
        if handler is None:
            return _error_result(f"no handler for {tool_id}")
        return await handler(params)

    async def abort_tool(self, call_id: str) -> bool:
        self.aborted.append(call_id)
        return True


async def hang_forever(_params: Dict[str, Any]) -> CallToolResult:
    await asyncio.Event().wait()
    return _text_result(None)


@pytest.fixture
def make_tool():
    """Factory building ServerTool descriptors."""
    return _make_tool


@pytest.fixture
def text_result():
    """Factory building successful text CallToolResults."""
    return _text_result


@pytest.fixture
def error_result():
    """Factory building error CallToolResults."""
    return _error_result


@pytest.fixture
def directory():
    """Empty FakeDirectory."""
    return FakeDirectory()


@pytest.fixture
def hang():
    """Tool handler that never returns."""
    return hang_forever
