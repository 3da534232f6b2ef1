# -*- coding: utf-8 -*-
"""Base model utilities for MCP Hub.

This module provides the shared Pydantic base class for every model that
crosses a wire boundary (MCP tool payloads and sandbox worker messages), so
that snake_case attributes in Python render as camelCase keys on the wire.

Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""

# Standard
from typing import Any, Dict

# Third-Party
from pydantic import BaseModel, ConfigDict


def to_camel_case(s: str) -> str:
    """Convert a string from snake_case to camelCase.

    Args:
        s (str): The string to be converted, which is assumed to be in snake_case.

    Returns:
        str: The string converted to camelCase.

    Examples:
        >>> to_camel_case("function_name")
        'functionName'
        >>> to_camel_case("is_error")
        'isError'
        >>> to_camel_case("alreadyCamel")
        'alreadyCamel'
        >>> to_camel_case("")
        ''
        >>> to_camel_case("single")
        'single'
    """
    return "".join(word.capitalize() if i else word for i, word in enumerate(s.split("_")))


class BaseModelWithConfigDict(BaseModel):
    """Base model with common configuration for hub wire types.

    Provides:
    - Automatic conversion from snake_case to camelCase for output
    - Populate by name for flexible field naming
    - Unknown keys ignored on input

    Examples:
        >>> class ToolRef(BaseModelWithConfigDict):
        ...     server_id: str
        >>> ToolRef(serverId="s1").server_id
        's1'
        >>> ToolRef(server_id="s1").model_dump(by_alias=True)
        {'serverId': 's1'}
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel_case,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )

    def to_dict(self, use_alias: bool = False) -> Dict[str, Any]:
        """Convert the model instance into a dictionary representation.

        Args:
            use_alias (bool): Whether to use aliases for field names (default is False).

        Returns:
            Dict[str, Any]: A dictionary of field values with nested models converted.
        """
        return self.model_dump(by_alias=use_alias)
