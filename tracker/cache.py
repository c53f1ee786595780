# tracker/cache.py
import logging
import time
from typing import Any, Awaitable, Callable, Hashable, Optional

from cachetools import LRUCache, TTLCache


class CacheEntry:
    __slots__ = ("data", "fetched_at")

    def __init__(self, data, fetched_at: float):
        self.data = data
        self.fetched_at = fetched_at


class MetadataCache:
    """
    TTL cache in front of an async lookup (group metadata).

    Fresh entries live in a TTLCache. Every fetched value is also kept in an
    LRUCache of last known values, which is what gets served when a refresh
    fails after the fresh entry expired.
    """

    def __init__(self, ttl: float = 30, maxsize: int = 1000, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.timer = timer
        self._fresh = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._last_known = LRUCache(maxsize=maxsize)

    def __len__(self):
        return len(self._fresh)

    def __contains__(self, key):
        return key in self._fresh

    def _lookup(self, key: Hashable, ttl: Optional[float]) -> Optional[CacheEntry]:
        entry = self._fresh.get(key)
        if entry is None:
            return None
        if ttl is not None and self.timer() - entry.fetched_at >= ttl:
            self._fresh.pop(key, None)
            return None
        return entry

    async def get(self, key: Hashable, fetch_fn: Callable[[Hashable], Awaitable[Any]], ttl: Optional[float] = None):
        """Return fresh data for `key`, refreshing through `fetch_fn` when expired."""
        entry = self._lookup(key, ttl)
        if entry is not None:
            logging.debug(f"📦 Metadata served from cache: {key}")
            return entry.data

        stale = self._last_known.get(key)
        try:
            data = await fetch_fn(key)
        except Exception as e:
            if stale is None:
                logging.error(f"❌ Metadata fetch failed for {key}: {e}")
                raise
            logging.warning(f"⚠️ Metadata fetch failed for {key}, serving stale entry: {e}")
            return stale.data

        entry = CacheEntry(data, self.timer())
        self._fresh[key] = entry
        self._last_known[key] = entry
        logging.debug(f"🔄 Metadata refreshed in cache: {key}")
        return data

    def invalidate(self, key: Hashable):
        """Drop the fresh entry so the next lookup refetches. Last known value is kept."""
        self._fresh.pop(key, None)

    def clear(self):
        self._fresh.clear()
        self._last_known.clear()
