# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/bridge.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tool Bridge.

Resolves a sandbox function name to the upstream server tool that backs it
and performs the call through the tool directory. The name mapping lives in
an explicit :class:`ToolRegistry` owned by the catalog and shared with the
bridge by reference.

Examples:
    >>> registry = ToolRegistry()
    >>> registry.get("github_searchRepos") is None
    True
    >>> len(registry)
    0
"""

# Standard
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, Optional

# Third-Party
from mcp.types import CallToolResult
import orjson

# First-Party
from mcphub.hub.directory import ToolDirectory
from mcphub.hub.generator import GeneratedTool
from mcphub.services.logging_service import LoggingService

logger = LoggingService().get_logger(__name__)

TOOL_ID_SEPARATOR = "__"


class ToolBridgeError(Exception):
    """Base class for failures while invoking a tool on behalf of sandbox code."""


class ToolNotFoundError(ToolBridgeError):
    """Raised when a function name does not map to any known tool.

    Examples:
        >>> str(ToolNotFoundError("Tool not found: x"))
        'Tool not found: x'
    """


class ToolExecutionError(ToolBridgeError):
    """Raised when the upstream tool reports an error result."""


@dataclass(frozen=True)
class ToolMapping:
    """Backing tool of a generated function."""

    server_id: str
    tool_name: str

    @property
    def tool_id(self) -> str:
        """Directory-wide id of the backing tool.

        Returns:
            ``serverId__toolName``.

        Examples:
            >>> ToolMapping("gh", "search_repos").tool_id
            'gh__search_repos'
        """
        return f"{self.server_id}{TOOL_ID_SEPARATOR}{self.tool_name}"


class ToolRegistry:
    """Mapping from generated function name to its backing tool.

    The registry is only ever replaced wholesale so readers never observe a
    half-built mapping.

    Examples:
        >>> from mcphub.hub.generator import GeneratedTool
        >>> async def call(params=None):
        ...     return None
        >>> stub = GeneratedTool("gh", "github", "search", "github_search", "", "", "Any", call)
        >>> registry = ToolRegistry()
        >>> registry.replace([stub])
        >>> registry.get("github_search")
        ToolMapping(server_id='gh', tool_name='search')
        >>> registry.clear()
        >>> "github_search" in registry
        False
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._mappings: Dict[str, ToolMapping] = {}

    def replace(self, tools: Iterable[GeneratedTool]) -> None:
        """Rebuild the registry from a catalog snapshot.

        Args:
            tools: Generated catalog entries.
        """
        self._mappings = {tool.function_name: ToolMapping(tool.server_id, tool.tool_name) for tool in tools}

    def clear(self) -> None:
        """Drop every mapping."""
        self._mappings = {}

    def get(self, function_name: str) -> Optional[ToolMapping]:
        """Look up the backing tool of ``function_name``.

        Args:
            function_name: Generated function name.

        Returns:
            The mapping, or None when unknown.
        """
        return self._mappings.get(function_name)

    def __contains__(self, function_name: object) -> bool:
        return function_name in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mappings)


def _first_text(result: CallToolResult) -> Optional[str]:
    for block in result.content or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return None


def parse_tool_result(result: CallToolResult) -> Any:
    """Convert a successful MCP tool result into plain Python data.

    The first text block is decoded as JSON when possible, otherwise returned
    verbatim. Without any text block the content list is returned as
    JSON-compatible dicts, or None when empty.

    Args:
        result: Upstream call result.

    Returns:
        Decoded value.

    Examples:
        >>> from mcp.types import TextContent
        >>> parse_tool_result(CallToolResult(content=[TextContent(type="text", text='{"a": 1}')]))
        {'a': 1}
        >>> parse_tool_result(CallToolResult(content=[TextContent(type="text", text="plain")]))
        'plain'
        >>> parse_tool_result(CallToolResult(content=[])) is None
        True
    """
    text = _first_text(result)
    if text is not None:
        try:
            return orjson.loads(text)
        except orjson.JSONDecodeError:
            return text

    if not result.content:
        return None
    return [block.model_dump(mode="json", by_alias=True, exclude_none=True) for block in result.content]


class ToolBridge:
    """Invokes upstream tools for the sandbox by generated function name."""

    def __init__(
        self,
        directory: ToolDirectory,
        registry: ToolRegistry,
        refresh: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        """Initialize the bridge.

        Args:
            directory: Tool directory used to call and abort tools.
            registry: Function name mapping, shared with the catalog.
            refresh: Callback forcing a catalog refresh; used once per lookup miss.
        """
        self._directory = directory
        self._registry = registry
        self._refresh = refresh

    async def _resolve(self, function_name: str) -> ToolMapping:
        mapping = self._registry.get(function_name)
        if mapping is None and self._refresh is not None:
            logger.debug(f"Function {function_name} not in registry, refreshing catalog")
            await self._refresh()
            mapping = self._registry.get(function_name)
        if mapping is None:
            raise ToolNotFoundError(f"Tool not found: {function_name}")
        return mapping

    async def call_mcp_tool(self, function_name: str, params: Optional[Dict[str, Any]] = None, call_id: Optional[str] = None) -> Any:
        """Call the tool backing ``function_name``.

        Args:
            function_name: Generated function name.
            params: Tool arguments.
            call_id: Id under which the directory tracks the call for aborts.

        Returns:
            Decoded tool result, see :func:`parse_tool_result`.

        Raises:
            ToolNotFoundError: If the name is unknown even after a refresh.
            ToolExecutionError: If the tool reports an error.
        """
        mapping = await self._resolve(function_name)
        logger.debug(f"Calling tool {mapping.tool_id} for {function_name}")

        result = await self._directory.call_tool_by_id(mapping.tool_id, dict(params or {}), call_id)

        if result.isError:
            message = _first_text(result) or "Tool execution failed"
            logger.info(f"Tool {mapping.tool_id} returned an error: {message}")
            raise ToolExecutionError(message)

        return parse_tool_result(result)

    async def abort_mcp_tool(self, call_id: str) -> bool:
        """Ask the directory to abort an in-flight call.

        Args:
            call_id: Id passed to :meth:`call_mcp_tool`.

        Returns:
            Whether the directory aborted a call.
        """
        return await self._directory.abort_tool(call_id)
