"""Redis implementation of DurableStore.

Each entry is stored as a JSON string under `<prefix>:entry:<fingerprint>`.
A sorted set `<prefix>:lru` scores every fingerprint by its last access
time and drives capacity eviction. A single SET replaces a record
atomically, so readers never observe a partial write.
"""

import logging
import math
import time
from collections.abc import Callable

import redis
from pydantic import ValidationError

from response_cache.config import get_redis_client, settings
from response_cache.entities import CacheEntry
from response_cache.exceptions import DurableReadError, DurableWriteError
from response_cache.keys import short_key
from response_cache.models import decode_entry, encode_entry

logger = logging.getLogger(__name__)


class RedisDurableStore:
    """Redis-backed durable tier.

    This class satisfies the DurableStore protocol through structural
    typing - no explicit inheritance needed.

    When `ttl` is given, records also carry a native Redis expiry so the
    server drops them even if no sweep runs.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
        max_items: int | None = None,
        ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the Redis store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Namespace for keys written by this store.
            max_items: Maximum number of persisted records.
            ttl: Native expiry for records in seconds. None disables it.
            clock: Source of Unix timestamps for recency tracking.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.cache_key_prefix
        self._max_items = max_items or settings.cache_max_durable_items
        self._ttl = ttl
        self._clock = clock
        self._lru_key = f"{self._prefix}:lru"

    @classmethod
    def create(
        cls,
        key_prefix: str | None = None,
        max_items: int | None = None,
        ttl: float | None = None,
    ) -> "RedisDurableStore":
        """Factory method to create RedisDurableStore with defaults.

        Args:
            key_prefix: Key namespace. If None, uses settings.
            max_items: Capacity. If None, uses settings.
            ttl: Native record expiry in seconds.

        Returns:
            Configured RedisDurableStore
        """
        return cls(key_prefix=key_prefix, max_items=max_items, ttl=ttl)

    def _entry_key(self, key: str) -> str:
        return f"{self._prefix}:entry:{key}"

    def _read(self, key: str) -> CacheEntry | None:
        try:
            raw = self._client.get(self._entry_key(key))
        except redis.RedisError as e:
            raise DurableReadError(f"Failed to read {short_key(key)}: {e}") from e

        if raw is None:
            self._forget(key)
            return None

        try:
            entry = decode_entry(raw)  # type: ignore[arg-type]
        except ValidationError as e:
            logger.warning("Removing corrupt cache record %s: %s", short_key(key), e)
            self.remove(key)
            return None
        return entry

    def _forget(self, key: str) -> None:
        # Drops a recency entry whose record expired server-side.
        try:
            self._client.zrem(self._lru_key, key)
        except redis.RedisError as e:
            logger.warning("Failed to drop recency for %s: %s", short_key(key), e)

    def get(self, key: str) -> CacheEntry | None:
        entry = self._read(key)
        if entry is not None:
            try:
                self._client.zadd(self._lru_key, {key: self._clock()}, xx=True)
            except redis.RedisError as e:
                logger.warning("Failed to update recency for %s: %s", short_key(key), e)
        return entry

    def peek(self, key: str) -> CacheEntry | None:
        return self._read(key)

    def put(self, key: str, entry: CacheEntry) -> list[str]:
        try:
            data = encode_entry(entry)
        except (ValueError, TypeError) as e:
            raise DurableWriteError(f"Payload for {short_key(key)} is not serializable: {e}") from e

        expiry = math.ceil(self._ttl) if self._ttl else None
        try:
            pipe = self._client.pipeline()
            pipe.set(self._entry_key(key), data, ex=expiry)
            pipe.zadd(self._lru_key, {key: max(entry.accessed_at, self._clock())})
            pipe.execute()
            return self._enforce_capacity()
        except redis.RedisError as e:
            raise DurableWriteError(f"Failed to persist {short_key(key)}: {e}") from e

    def _enforce_capacity(self) -> list[str]:
        overflow = int(self._client.zcard(self._lru_key)) - self._max_items  # type: ignore[arg-type]
        if overflow <= 0:
            return []

        victims = [
            k.decode() if isinstance(k, bytes) else k
            for k in self._client.zrange(self._lru_key, 0, overflow - 1)  # type: ignore[union-attr]
        ]
        if not victims:
            return []
        pipe = self._client.pipeline()
        for victim in victims:
            pipe.delete(self._entry_key(victim))
        pipe.zrem(self._lru_key, *victims)
        pipe.execute()
        logger.debug("Evicted %d durable records", len(victims))
        return victims

    def remove(self, key: str) -> bool:
        try:
            pipe = self._client.pipeline()
            pipe.delete(self._entry_key(key))
            pipe.zrem(self._lru_key, key)
            deleted, _ = pipe.execute()
        except redis.RedisError as e:
            logger.warning("Failed to remove cache record %s: %s", short_key(key), e)
            return False
        return bool(deleted)

    def list_keys(self) -> list[str]:
        try:
            members = self._client.zrange(self._lru_key, 0, -1)
        except redis.RedisError as e:
            raise DurableReadError(f"Failed to list keys: {e}") from e
        return [k.decode() if isinstance(k, bytes) else k for k in members]  # type: ignore[union-attr]

    def load_all(self, limit: int, ttl: float, now: float) -> list[tuple[str, CacheEntry]]:
        try:
            members = self._client.zrevrange(self._lru_key, 0, -1)
        except redis.RedisError as e:
            raise DurableReadError(f"Failed to list keys: {e}") from e

        loaded = []
        for member in members:  # type: ignore[union-attr]
            if len(loaded) >= limit:
                break
            key = member.decode() if isinstance(member, bytes) else member
            entry = self._read(key)
            if entry is None or entry.is_expired(now, ttl):
                continue
            loaded.append((key, entry))
        return loaded

    def clear(self) -> int:
        count = 0
        try:
            for entry_key in self._client.scan_iter(match=f"{self._prefix}:entry:*"):
                count += int(self._client.delete(entry_key))  # type: ignore[arg-type]
            self._client.delete(self._lru_key)
        except redis.RedisError as e:
            raise DurableWriteError(f"Failed to clear records: {e}") from e
        return count

    def count(self) -> int:
        try:
            return int(self._client.zcard(self._lru_key))  # type: ignore[arg-type]
        except redis.RedisError as e:
            raise DurableReadError(f"Failed to count records: {e}") from e

    def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
