"""Shared keys to avoid magic strings across url-preview modules."""

from __future__ import annotations

# Per-dispatch module extras
K_PREFIX = "prefix"
K_CACHE_DIR = "cache_dir"
K_CONTENT_TYPE = "content_type"
K_FROM_CACHE = "from_cache"

# Request options consumed by retrievers
K_HEADERS = "headers"
K_TIMEOUT = "timeout"

# CLI / JSON summary keys
K_URL = "url"
K_MODULE = "module"
K_STATUS = "status"
K_TEXT = "text"
