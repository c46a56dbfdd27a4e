# src/__init__.py - v1
"""aicache: two-tier AI response cache."""

from aicache.cache.cache_factory import create_response_cache
from aicache.cache.response_cache import CacheConfig, ResponseCache
from aicache.version import __version__

__all__ = ["CacheConfig", "ResponseCache", "create_response_cache", "__version__"]
