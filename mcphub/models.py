# -*- coding: utf-8 -*-
"""Location: ./mcphub/models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared enumerations for MCP Hub.
"""

# Standard
from enum import Enum


class LogLevel(str, Enum):
    """RFC 5424 log severity levels used by the logging service.

    Examples:
        >>> LogLevel.INFO.value
        'info'
        >>> LogLevel("debug") == LogLevel.DEBUG
        True
    """

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"
