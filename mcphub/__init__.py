# -*- coding: utf-8 -*-
"""Location: ./mcphub/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

MCP Hub: a meta-tool server that lets a model search a large catalog of
remote MCP tools and call several of them from one sandboxed script.
"""

__version__ = "0.1.0"
