# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Hub Package.
Tool generation, search, the sandbox worker protocol and the execution
runtime behind the ``search`` and ``exec`` meta-tools.
"""
