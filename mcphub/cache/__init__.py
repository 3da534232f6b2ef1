# -*- coding: utf-8 -*-
"""Location: ./mcphub/cache/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Cache Package.
Provides the in-memory TTL cache that holds generated tool catalog snapshots.
"""

from mcphub.cache.ttl_cache import TTLCache

__all__ = ["TTLCache"]
