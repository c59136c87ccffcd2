"""
In-Memory TTL Cache
===================

Keyed, TTL-bounded, size-bounded cache used for fetched review batches,
place details and derived analyses. Everything lives in process memory
and is recomputed after a restart.

Features:
- TTL-based expiration checked on read
- Bounded size: after an insertion beyond max_entries the oldest entries
  (by write timestamp) are evicted
- Pluggable clock for deterministic tests
- Last-writer-wins, no locking (duplicate work on concurrent misses is fine)

Usage:
    cache = TTLCache("sentiment", ttl_seconds=3600, max_entries=10)
    cache.set('{"region": "Sul"}', payload)
    payload = cache.get('{"region": "Sul"}')
"""

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached payload with its write timestamp."""
    payload: Any
    timestamp: float
    sequence: int  # write order, breaks timestamp ties


class TTLCache:
    """
    Bounded TTL cache for one cache domain.

    Entries are replaced (never merged) when a key is written again.
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float = 3600,
        max_entries: int = 10,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            name: Cache domain name (used in logs and stats).
            ttl_seconds: Lifetime of an entry.
            max_entries: Number of entries kept after each write.
            clock: Returns the current time in seconds.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._sequence = itertools.count()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached payload or None if not found/expired
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.timestamp >= self.ttl_seconds:
            del self._entries[key]
            self._misses += 1
            logger.debug(f"[{self.name}] expired: {key}")
            return None

        self._hits += 1
        logger.debug(f"[{self.name}] hit: {key}")
        return entry.payload

    def set(self, key: str, value: Any) -> None:
        """Store value under key, then evict down to max_entries."""
        self._entries[key] = CacheEntry(
            payload=value,
            timestamp=self._clock(),
            sequence=next(self._sequence),
        )
        self._evict()

    def delete(self, key: str) -> bool:
        """Delete key from cache. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def clear_expired(self) -> int:
        """Drop expired entries. Returns the number of entries removed."""
        now = self._clock()
        expired = [
            k for k, e in self._entries.items()
            if now - e.timestamp >= self.ttl_seconds
        ]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def keys(self) -> List[str]:
        """Keys ordered from oldest to newest write."""
        return [
            k for k, _ in sorted(
                self._entries.items(),
                key=lambda item: (item[1].timestamp, item[1].sequence),
            )
        ]

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "name": self.name,
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
        }

    def _evict(self) -> None:
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return
        for key in self.keys()[:overflow]:
            del self._entries[key]
            logger.debug(f"[{self.name}] evicted: {key}")
