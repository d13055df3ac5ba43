"""Bounded in-process tier with least-recently-used eviction."""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from response_cache.entities import CacheEntry
from response_cache.keys import short_key

logger = logging.getLogger(__name__)


class MemoryTier:
    """In-process store of cache entries keyed by fingerprint.

    Capacity is counted in entries, not bytes. When a new key is inserted
    into a full tier, the entry with the oldest `accessed_at` is evicted
    (ties broken by the earliest `created_at`, then by recency order).

    All operations hold a single lock over the backing map, so readers
    never observe a partially replaced entry. Entries are copied on the
    way in and out; callers cannot mutate the stored state.
    """

    def __init__(self, max_items: int, clock: Callable[[], float] = time.time) -> None:
        """Initialize the tier.

        Args:
            max_items: Maximum number of resident entries (>= 1)
            clock: Source of Unix timestamps for access bookkeeping
        """
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self._max_items = max_items
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        """Look up an entry and record the access.

        Returns:
            A copy of the entry after the access was recorded, or None
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.touch(self._clock())
            self._entries.move_to_end(key)
            return entry.snapshot()

    def peek(self, key: str) -> CacheEntry | None:
        """Look up an entry without recording an access."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.snapshot() if entry is not None else None

    def put(self, key: str, entry: CacheEntry) -> str | None:
        """Insert or replace an entry.

        Returns:
            The key evicted to make room, if any
        """
        evicted = None
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_items:
                evicted = self._evict_lru()
            self._entries[key] = entry.snapshot()
            self._entries.move_to_end(key)
        if evicted is not None:
            logger.debug("Evicted LRU entry %s", short_key(evicted))
        return evicted

    def _evict_lru(self) -> str | None:
        # Caller holds the lock. min() keeps the first of equal candidates,
        # and iteration runs from least to most recently touched.
        if not self._entries:
            return None
        victim = min(
            self._entries,
            key=lambda k: (self._entries[k].accessed_at, self._entries[k].created_at),
        )
        del self._entries[victim]
        return victim

    def remove(self, key: str) -> bool:
        """Delete an entry. Returns True if it was resident."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def keys(self) -> list[str]:
        """Snapshot of resident keys, least recently used first."""
        with self._lock:
            return list(self._entries)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def is_full(self) -> bool:
        return self.size() >= self._max_items
