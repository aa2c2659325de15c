"""
In-memory cache with a TTL per entry
"""

import logging
import threading
import time
from typing import Any, NamedTuple, Optional

from cachetools import TLRUCache

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 64


class _Entry(NamedTuple):
    value: Any
    ttl: int


def _time_to_use(key, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class RamCache:
    """Thread-safe key/value store whose entries expire after their own TTL"""

    def __init__(self, maxsize: int = DEFAULT_MAX_ENTRIES, timer=time.monotonic):
        self._cache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return entry.value

    def put(self, key: str, value: Any, ttl: int) -> None:
        """Store value for ttl seconds; a ttl of zero or less stores nothing"""
        if ttl <= 0:
            return
        with self._lock:
            self._cache[key] = _Entry(value, ttl)
        logger.debug(f"Cached {key} for {ttl}s")

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
