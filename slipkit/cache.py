"""Read-through cache for report results."""

import copy
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """
    Bounded cache with a fixed time-to-live per entry.

    Entries expire ttl_seconds after they were stored. When the cache is full
    the least recently used entry is evicted. All operations are thread-safe.

    Values are deep-copied on the way in and on the way out, so callers may
    mutate what they stored or got back without touching the cached entry.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        capacity: int = 256,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            ttl_seconds: Lifetime of an entry; 0 disables caching
            capacity: Maximum number of live entries
            clock: Monotonic clock in seconds (injectable for tests)

        Raises:
            ValueError: If ttl_seconds is negative or capacity is below 1
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        """Return the cached value for key, or default if absent or expired."""
        with self._lock:
            value = self._lookup(key)
        return default if value is _MISSING else copy.deepcopy(value)

    def set(self, key: Hashable, value: Any) -> None:
        """Store value under key, evicting the least recently used entry if full."""
        if self.ttl_seconds == 0:
            return
        with self._lock:
            self._store(key, copy.deepcopy(value))

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        compute() runs outside the lock, so two threads missing the same key
        at once may both compute it; the last result stored wins.
        """
        with self._lock:
            value = self._lookup(key)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return copy.deepcopy(value)

        logger.debug("Cache miss: %s", key)
        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or every entry when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def _lookup(self, key: Hashable) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return _MISSING
        self._entries.move_to_end(key)
        return value

    def _store(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        if len(self._entries) > self.capacity:
            self._purge_expired()
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
