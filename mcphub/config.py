# -*- coding: utf-8 -*-
"""Location: ./mcphub/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

MCP Hub configuration.

Settings are read from environment variables (case-insensitive) and an
optional ``.env`` file in the working directory.

Examples:
    >>> from mcphub.config import Settings
    >>> s = Settings(hub_exec_timeout_ms=5000)
    >>> s.hub_exec_timeout_ms
    5000
    >>> Settings().hub_search_max_limit
    50
"""

# Standard
from typing import Literal, Optional

# Third-Party
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the hub server and its execution engine."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    app_name: str = Field(default="mcp-hub", description="Server name announced during the MCP handshake")
    hub_directory: Optional[str] = Field(default=None, description="Tool directory to serve, as module:attribute")

    # Logging
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_format: Literal["text", "json"] = Field(default="text", description="Console log format")
    log_to_file: bool = Field(default=False, description="Also write JSON logs to a rotating file")
    log_file: Optional[str] = Field(default="mcphub.log", description="Log file name")
    log_folder: Optional[str] = Field(default=None, description="Folder for the log file")

    # Catalog cache
    hub_cache_ttl_ms: int = Field(default=60_000, gt=0, description="Lifetime of a generated tool catalog snapshot")

    # Execution runtime
    hub_exec_timeout_ms: int = Field(default=60_000, gt=0, description="Wall-clock limit for one exec call")
    hub_max_logs: int = Field(default=1000, gt=0, description="Maximum captured console lines per exec call")
    hub_sandbox_python: Optional[str] = Field(default=None, description="Interpreter used to launch sandbox workers, the running interpreter when unset")
    hub_max_message_bytes: int = Field(default=64 * 1024 * 1024, gt=0, description="Largest single protocol line exchanged with a sandbox worker")

    # Search
    hub_search_default_limit: int = Field(default=10, ge=1, description="Result count when a search omits limit")
    hub_search_max_limit: int = Field(default=50, ge=1, description="Upper bound for search limit")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and validate the configured log level.

        Args:
            v: Raw level name.

        Returns:
            Upper-cased level name.

        Raises:
            ValueError: If the level is not a standard logging level.

        Examples:
            >>> Settings.validate_log_level("debug")
            'DEBUG'
        """
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


settings = Settings()
