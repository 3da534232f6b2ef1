# -*- coding: utf-8 -*-
"""Location: ./mcphub/utils/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared utilities for MCP Hub.
"""
