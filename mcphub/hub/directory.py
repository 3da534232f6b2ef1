# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/directory.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Collaborator interfaces consumed by the hub.

The hub does not talk to upstream MCP servers itself. The embedding
application supplies a ``ToolDirectory`` that lists every tool of the active
servers, invokes a tool by its directory id and aborts an in-flight call.
The catalog cache is any object with the ``CatalogCache`` shape;
:class:`mcphub.cache.ttl_cache.TTLCache` is the default.
"""

# Standard
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

# Third-Party
from mcp.types import CallToolResult

# First-Party
from mcphub.hub.schemas import ServerTool


@runtime_checkable
class ToolDirectory(Protocol):
    """Directory of the tools exposed by all active upstream servers."""

    async def list_all_active_server_tools(self) -> List[ServerTool]:
        """Return every tool of every active server."""

    async def call_tool_by_id(self, tool_id: str, params: Dict[str, Any], call_id: Optional[str] = None) -> CallToolResult:
        """Invoke ``tool_id`` (``serverId__toolName``) with ``params``."""

    async def abort_tool(self, call_id: str) -> bool:
        """Abort the in-flight call registered under ``call_id``."""


@runtime_checkable
class CatalogCache(Protocol):
    """Generic TTL key/value store."""

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None."""

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """Store ``value`` for ``ttl_ms`` milliseconds."""

    def remove(self, key: str) -> None:
        """Drop ``key``."""
