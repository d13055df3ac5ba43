"""Durable storage protocol.

Defines the interface for the persisted tier of the response cache: the
store that survives restarts and holds entries that no longer fit in
memory.

Implementations:
- FileDurableStore: one JSON file per fingerprint (default)
- RedisDurableStore: one Redis string per fingerprint
"""

from typing import Protocol, runtime_checkable

from response_cache.entities import CacheEntry


@runtime_checkable
class DurableStore(Protocol):
    """Protocol for durable cache tiers.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Read methods return None for missing or corrupt records (corrupt
    records are removed as a side effect). Write methods raise
    DurableWriteError when the record could not be persisted.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Read an entry and mark it as recently used.

        Args:
            key: The entry fingerprint

        Returns:
            The stored entry, or None if absent or unreadable

        Raises:
            DurableReadError: If the backing medium is unavailable
        """
        ...

    def peek(self, key: str) -> CacheEntry | None:
        """Read an entry without touching its recency."""
        ...

    def put(self, key: str, entry: CacheEntry) -> list[str]:
        """Persist an entry atomically, replacing any prior record.

        Args:
            key: The entry fingerprint
            entry: The entry to persist

        Returns:
            Keys evicted to stay within the store's capacity

        Raises:
            DurableWriteError: If the entry could not be persisted
        """
        ...

    def remove(self, key: str) -> bool:
        """Delete an entry.

        Returns:
            True if a record was deleted, False if none existed
        """
        ...

    def list_keys(self) -> list[str]:
        """List every persisted key. O(n); not for the hot path."""
        ...

    def load_all(self, limit: int, ttl: float, now: float) -> list[tuple[str, CacheEntry]]:
        """Load up to `limit` unexpired entries, most recently used first.

        Args:
            limit: Maximum number of entries to return
            ttl: Expiry horizon in seconds
            now: Current Unix timestamp

        Returns:
            List of (key, entry) pairs
        """
        ...

    def clear(self) -> int:
        """Delete every entry.

        Returns:
            Number of entries deleted
        """
        ...

    def count(self) -> int:
        """Count persisted entries."""
        ...

    def health_check(self) -> bool:
        """Check if the backing medium is accessible."""
        ...
