# -*- coding: utf-8 -*-
"""Local key/value cache (JSON blobs keyed by semantic, user-scoped keys)."""

from .keys import CacheKeys
from .store import CacheStore

__all__ = ["CacheKeys", "CacheStore"]
