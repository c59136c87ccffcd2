"""
Store Review Insights Cache Module
==================================

Provides the bounded, TTL-based in-memory cache shared by every
cache domain (raw reviews, place details, qualitative and sentiment
analyses).

Usage:
    from src.cache import TTLCache

    cache = TTLCache("reviews", ttl_seconds=3600, max_entries=10)
    cache.set("key", {"data": "value"})
    result = cache.get("key")
"""

from .memory_cache import TTLCache, CacheEntry

__all__ = ["TTLCache", "CacheEntry"]
