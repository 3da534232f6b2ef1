# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/catalog.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tool Catalog.

Produces the generated tool catalog from the tool directory and keeps it in a
TTL cache so that a burst of ``search`` and ``exec`` calls lists the upstream
servers once. The catalog owns the :class:`ToolRegistry` and the
:class:`ToolBridge` that resolves names through it.
"""

# Standard
from typing import Any, Dict, List, Optional

# First-Party
from mcphub.cache.ttl_cache import TTLCache
from mcphub.config import settings
from mcphub.hub.bridge import ToolBridge, ToolRegistry
from mcphub.hub.directory import CatalogCache, ToolDirectory
from mcphub.hub.generator import generate_tool_catalog, GeneratedTool
from mcphub.services.logging_service import LoggingService

logger = LoggingService().get_logger(__name__)

CATALOG_CACHE_KEY = "hub:tool-catalog"


class ToolCatalog:
    """TTL-cached snapshot of every generated tool function.

    Examples:
        >>> from unittest.mock import AsyncMock
        >>> catalog = ToolCatalog(AsyncMock(), ttl_ms=1000)
        >>> len(catalog.registry)
        0
        >>> catalog.ttl_ms
        1000
    """

    def __init__(self, directory: ToolDirectory, cache: Optional[CatalogCache] = None, ttl_ms: Optional[int] = None):
        """Initialize the catalog.

        Args:
            directory: Source of upstream tools.
            cache: Snapshot store, a private :class:`TTLCache` by default.
            ttl_ms: Snapshot lifetime, defaults to ``settings.hub_cache_ttl_ms``.
        """
        self._directory = directory
        self._cache: CatalogCache = cache if cache is not None else TTLCache()
        self.ttl_ms = ttl_ms or settings.hub_cache_ttl_ms
        self.registry = ToolRegistry()
        self.bridge = ToolBridge(directory, self.registry, refresh=self.refresh)

    async def _invoke(self, function_name: str, params: Dict[str, Any]) -> Any:
        return await self.bridge.call_mcp_tool(function_name, params)

    async def fetch_tools(self) -> List[GeneratedTool]:
        """Return the current catalog snapshot, generating it on a cache miss.

        The registry is rebuilt from the returned snapshot on every call.

        Returns:
            Generated tools in directory order.
        """
        tools: Optional[List[GeneratedTool]] = self._cache.get(CATALOG_CACHE_KEY)
        if tools is None:
            server_tools = await self._directory.list_all_active_server_tools()
            tools = generate_tool_catalog(server_tools, self._invoke)
            self._cache.set(CATALOG_CACHE_KEY, tools, self.ttl_ms)
            logger.info(f"Generated tool catalog with {len(tools)} tool(s)")

        self.registry.replace(tools)
        return tools

    def invalidate_cache(self) -> None:
        """Drop the cached snapshot and empty the registry."""
        self._cache.remove(CATALOG_CACHE_KEY)
        self.registry.clear()
        logger.debug("Tool catalog invalidated")

    async def refresh(self) -> List[GeneratedTool]:
        """Regenerate the snapshot from the directory.

        Returns:
            The fresh snapshot.
        """
        self.invalidate_cache()
        return await self.fetch_tools()
