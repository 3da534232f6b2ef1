# -*- coding: utf-8 -*-
"""Location: ./mcphub/services/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Services Package.
Exposes process-wide hub services:
- Logging
"""
