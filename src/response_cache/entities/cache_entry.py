"""Cache entry domain entity."""

from dataclasses import dataclass, replace
from typing import Any


@dataclass
class CacheEntry:
    """Domain entity for a cached generation.

    Only the access bookkeeping (accessed_at, access_count) changes after
    creation, and only inside the tier that owns the entry.

    Attributes:
        fingerprint: Exact-match key derived from (prompt, context)
        prompt: The original prompt, kept to rebuild the token index on reload
        context: Optional context the prompt was issued in
        payload: The cached result (JSON-serializable, opaque to the cache)
        created_at: Unix timestamp fixing the expiry horizon
        accessed_at: Unix timestamp of the last successful read
        access_count: Number of successful reads, including the initial write
    """

    fingerprint: str
    prompt: str
    context: str | None
    payload: Any
    created_at: float
    accessed_at: float
    access_count: int = 1

    @classmethod
    def create(
        cls,
        fingerprint: str,
        prompt: str,
        context: str | None,
        payload: Any,
        now: float,
    ) -> "CacheEntry":
        """Build a fresh entry with created_at = accessed_at = now."""
        return cls(
            fingerprint=fingerprint,
            prompt=prompt,
            context=context,
            payload=payload,
            created_at=now,
            accessed_at=now,
            access_count=1,
        )

    def is_expired(self, now: float, ttl: float) -> bool:
        """Check whether the entry has outlived its TTL."""
        return now - self.created_at > ttl

    def touch(self, now: float) -> None:
        """Record a successful read."""
        self.accessed_at = max(now, self.created_at, self.accessed_at)
        self.access_count += 1

    def snapshot(self) -> "CacheEntry":
        """Return a detached copy safe to hand out of a tier."""
        return replace(self)
