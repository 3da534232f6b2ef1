# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/schemas.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Hub Schema Definitions.

Pydantic models for the data that crosses the hub's MCP boundary:
- ServerTool: one entry of the upstream tool directory
- SearchResult: payload of the ``search`` meta-tool
- ExecOutput: payload of the ``exec`` meta-tool

Examples:
    >>> tool = ServerTool(id="github__search_repos", serverId="github", serverName="GitHub", name="search_repos")
    >>> tool.server_name
    'GitHub'
    >>> ExecOutput(result=2).to_payload()
    {'result': 2}
    >>> ExecOutput.failure("boom", logs=["[log] hi"]).to_payload()
    {'logs': ['[log] hi'], 'error': 'boom', 'isError': True}
"""

# Standard
from typing import Any, Dict, List, Optional

# Third-Party
from pydantic import Field

# First-Party
from mcphub.utils.base_models import BaseModelWithConfigDict


class ServerTool(BaseModelWithConfigDict):
    """A tool advertised by one of the active upstream MCP servers.

    Attributes:
        id: Directory-wide tool id, ``serverId__toolName``.
        server_id: Id of the owning server.
        server_name: Human-readable server name, used for function naming.
        name: Tool name as exposed by the server.
        description: Optional tool description.
        input_schema: JSON Schema of the tool arguments.
        output_schema: Optional JSON Schema of the structured result.
    """

    id: str = Field(default="", description="Directory-wide tool id")
    server_id: str = Field(..., description="Owning server id")
    server_name: str = Field(default="", description="Owning server display name")
    name: str = Field(..., description="Tool name on the owning server")
    description: Optional[str] = Field(default=None, description="Tool description")
    input_schema: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}}, description="JSON Schema for arguments")
    output_schema: Optional[Dict[str, Any]] = Field(default=None, description="JSON Schema for structured output")


class SearchResult(BaseModelWithConfigDict):
    """Result of a ``search`` call.

    Attributes:
        tools: Rendered source text of the winning stubs.
        total: Number of matches before the limit was applied.
    """

    tools: str = Field(default="", description="Rendered stub declarations")
    total: int = Field(default=0, ge=0, description="Match count before limiting")


class ExecOutput(BaseModelWithConfigDict):
    """Outcome of one ``exec`` call.

    Exactly one of ``result`` or ``error`` is meaningful. Unset fields are left
    out of the wire payload.
    """

    result: Any = Field(default=None, description="Value returned by the script")
    logs: Optional[List[str]] = Field(default=None, description="Captured console lines")
    error: Optional[str] = Field(default=None, description="Failure message")
    is_error: Optional[bool] = Field(default=None, description="True when the run failed")

    @classmethod
    def success(cls, result: Any, logs: Optional[List[str]] = None) -> "ExecOutput":
        """Build a successful outcome.

        Args:
            result: Value returned by the script.
            logs: Captured console lines, omitted when empty.

        Returns:
            ExecOutput with ``result`` set.

        Examples:
            >>> ExecOutput.success(None).to_payload()
            {'result': None}
        """
        if logs:
            return cls(result=result, logs=list(logs))
        return cls(result=result)

    @classmethod
    def failure(cls, error: str, logs: Optional[List[str]] = None) -> "ExecOutput":
        """Build a failed outcome.

        Args:
            error: Failure message.
            logs: Captured console lines, omitted when empty.

        Returns:
            ExecOutput with ``error`` and ``is_error`` set.
        """
        if logs:
            return cls(logs=list(logs), error=error, is_error=True)
        return cls(error=error, is_error=True)

    def to_payload(self) -> Dict[str, Any]:
        """Return the camelCase wire dict containing only explicitly set fields.

        Returns:
            Dict ready for JSON encoding.
        """
        return self.model_dump(by_alias=True, exclude_unset=True)
