"""In-memory cache of fetched registry sources."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models import SourceEntry


@dataclass
class CacheEntry:
    """A single cached source with bookkeeping."""

    value: SourceEntry
    created_at: float = field(default_factory=time.time)
    hits: int = 0


class SourceCache:
    """Cache of successful fetches keyed by module name.

    Entries are never evicted automatically; they live as long as the cache
    object (or until ``clear``). Reads and inserts are guarded by a lock so
    concurrent fetchers cannot lose updates. Two fetchers that miss at the same
    time both insert; the later insert overwrites an equal value.
    """

    def __init__(self):
        """Initialize an empty cache."""
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._misses = 0

    def get(self, name: str) -> Optional[SourceEntry]:
        """Get a cached source.

        Args:
            name: Module name.

        Returns:
            Cached SourceEntry or None if not present.
        """
        with self._lock:
            entry = self._cache.get(name)
            if entry is None:
                self._misses += 1
                return None
            entry.hits += 1
            return entry.value

    def set(self, name: str, source: SourceEntry) -> None:
        """Cache a source.

        Args:
            name: Module name.
            source: Fetched source entry.
        """
        with self._lock:
            self._cache[name] = CacheEntry(value=source)

    def invalidate(self, name: str) -> None:
        """Drop one cached entry, if present."""
        with self._lock:
            self._cache.pop(name, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
            self._misses = 0

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "total_entries": len(self._cache),
                "hits": sum(e.hits for e in self._cache.values()),
                "misses": self._misses,
            }


_process_cache = SourceCache()


def process_cache() -> SourceCache:
    """Return the process-wide cache shared by fetchers created without one."""
    return _process_cache
