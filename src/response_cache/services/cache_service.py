"""Cache service for core business logic.

This service orchestrates the response cache by coordinating the memory
tier, the durable tier (any DurableStore) and the semantic matcher.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from typing import Any, TypeVar

from response_cache.config import CacheConfig, get_redis_client
from response_cache.entities import CacheEntry, CacheResult, ServedBy, WriteResult
from response_cache.exceptions import DurableStoreError, DurableTimeoutError
from response_cache.keys import fingerprint, short_key
from response_cache.models import CacheStatistics, HealthReport, Recommendation
from response_cache.protocols import DurableStore
from response_cache.repositories import FileDurableStore, MemoryTier, RedisDurableStore
from response_cache.services.matcher import SemanticMatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCK_STRIPES = 64
BULK_TIMEOUT_FACTOR = 10
IO_WORKERS = 4

LOW_HIT_RATE = 0.3
HIGH_EVICTION_RATIO = 0.5

WarmItem = tuple[str, str | None, Any] | Mapping[str, Any]


class CacheService:
    """Tiered response cache with approximate-match fallback.

    Lookups try, in order: the memory tier, the durable tier (promoting
    hits into memory), then token-overlap matching. Writes go through both
    tiers before `set` returns.

    Lifecycle: the service is created uninitialized. `start()` loads the
    durable snapshot into memory, rebuilds the token index and starts the
    background sweep; `shutdown()` stops the sweep and runs one final
    expiry pass. Any operation on an unstarted service starts it first.

    Durable failures never reach callers: reads degrade to misses, writes
    to a WriteResult carrying a warning.

    Example:
        ```python
        from response_cache import CacheConfig, CacheService

        with CacheService(CacheConfig(ttl=600)) as cache:
            result = cache.get("explain quicksort", context="cs101")
            if result is None:
                payload = call_model(...)
                cache.set("explain quicksort", "cs101", payload)
        ```
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        durable_store: DurableStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache service.

        Args:
            config: Cache options. Defaults to CacheConfig().
            durable_store: Durable tier. If None and persistence is enabled,
                one is built from `config.durable_backend`.
            clock: Source of Unix timestamps.
        """
        self._config = config or CacheConfig()
        self._clock = clock
        self._memory = MemoryTier(self._config.max_memory_items, clock=clock)
        self._durable: DurableStore | None = None
        if self._config.enable_durable_persistence:
            self._durable = durable_store or self._build_durable_store()
        self._matcher = SemanticMatcher()

        self._stats = CacheStatistics()
        self._stats_lock = threading.Lock()
        self._key_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

        self._lifecycle_lock = threading.RLock()
        self._running = False
        self._executor: ThreadPoolExecutor | None = None
        self._sweeper: threading.Thread | None = None
        self._stop = threading.Event()

    @classmethod
    def create(
        cls,
        config: CacheConfig | None = None,
        durable_store: DurableStore | None = None,
        **overrides: Any,
    ) -> "CacheService":
        """Factory method to create CacheService with sensible defaults.

        Keyword overrides are applied on top of `config` (or the settings
        from the environment) and validated.

        Example:
            ```python
            cache = CacheService.create(similarity_threshold=0.9, ttl=60)
            ```
        """
        from response_cache.config import settings

        base = config or settings.to_cache_config()
        if overrides:
            base = replace(base, **overrides)
        return cls(config=base, durable_store=durable_store)

    def _build_durable_store(self) -> DurableStore:
        if self._config.durable_backend == "redis":
            return RedisDurableStore(
                redis_client=get_redis_client(self._config.durable_timeout),
                key_prefix=self._config.key_prefix,
                max_items=self._config.max_durable_items,
                ttl=self._config.ttl,
                clock=self._clock,
            )
        return FileDurableStore(
            self._config.cache_dir,
            max_items=self._config.max_durable_items,
            clock=self._clock,
        )

    # Lifecycle

    def start(self) -> None:
        """Load the durable snapshot and start the background sweep."""
        with self._lifecycle_lock:
            if self._running:
                return
            self._executor = ThreadPoolExecutor(
                max_workers=IO_WORKERS, thread_name_prefix="response-cache-io"
            )
            self._running = True
            self._load_snapshot()

            self._stop.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop, name="response-cache-sweep", daemon=True
            )
            self._sweeper.start()

        logger.info(
            "Response cache started (max_memory_items=%d, ttl=%ss, durable=%s, semantic=%s)",
            self._config.max_memory_items,
            self._config.ttl,
            self._durable is not None,
            self._config.enable_semantic_matching,
        )

    def shutdown(self) -> None:
        """Stop the background sweep and purge expired entries once more."""
        with self._lifecycle_lock:
            if not self._running:
                return
            self._stop.set()
            if self._sweeper is not None:
                self._sweeper.join(timeout=self._config.durable_timeout * BULK_TIMEOUT_FACTOR)
                self._sweeper = None

            self._sweep()

            if self._executor is not None:
                self._executor.shutdown(wait=True, cancel_futures=True)
                self._executor = None
            self._running = False

        logger.info("Response cache shut down: %s", self.stats())

    def __enter__(self) -> "CacheService":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _ensure_started(self) -> None:
        if not self._running:
            self.start()

    def _load_snapshot(self) -> None:
        if self._durable is None:
            return
        # The token index covers every live durable record; memory takes
        # only the most recently used ones.
        limit = self._config.max_memory_items
        if self._config.enable_semantic_matching:
            limit = max(limit, self._config.max_durable_items)
        try:
            loaded = self._durable_call(
                self._durable.load_all,
                limit,
                self._config.ttl,
                self._clock(),
                timeout=self._config.durable_timeout * BULK_TIMEOUT_FACTOR,
            )
        except DurableStoreError as e:
            logger.warning("Failed to load cache snapshot: %s", e)
            return

        for key, entry in loaded[: self._config.max_memory_items]:
            self._memory.put(key, entry)
        if self._config.enable_semantic_matching:
            self._matcher.rebuild((entry.prompt, key) for key, entry in loaded)
        logger.info(
            "Loaded %d cache entries from durable storage (%d in memory)",
            len(loaded),
            self._memory.size(),
        )

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self._config.sweep_interval):
            try:
                self._sweep()
            except Exception:
                logger.exception("Background sweep failed")

    # Helpers

    def _key_lock(self, key: str) -> threading.Lock:
        return self._key_locks[hash(key) % LOCK_STRIPES]

    def _record(self, counter: str, amount: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + amount)

    def _is_expired(self, entry: CacheEntry) -> bool:
        return entry.is_expired(self._clock(), self._config.ttl)

    def _durable_call(
        self, fn: Callable[..., T], *args: Any, timeout: float | None = None
    ) -> T:
        """Run a durable operation with a bounded wait.

        Raises:
            DurableStoreError: If the operation failed or timed out.
        """
        executor = self._executor
        if executor is None:
            raise DurableStoreError("Durable executor is not running")
        future = executor.submit(fn, *args)
        try:
            return future.result(timeout=timeout or self._config.durable_timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise DurableTimeoutError(
                f"{getattr(fn, '__name__', 'durable operation')} timed out"
            ) from e
        except DurableStoreError:
            raise
        except Exception as e:
            raise DurableStoreError(str(e)) from e

    def _durable_peek(self, key: str) -> CacheEntry | None:
        if self._durable is None:
            return None
        try:
            return self._durable_call(self._durable.peek, key)
        except DurableStoreError as e:
            logger.warning("Durable read failed for %s: %s", short_key(key), e)
            return None

    # Read/write API

    def get(
        self,
        prompt: str,
        context: str | None = None,
        similarity_threshold: float | None = None,
    ) -> CacheResult | None:
        """Look up a cached payload.

        Args:
            prompt: The prompt to look up
            context: Optional context the prompt was issued in
            similarity_threshold: Override the configured semantic threshold (0-1)

        Returns:
            CacheResult tagged with the layer that served it, or None on a miss
        """
        if similarity_threshold is not None and not 0 <= similarity_threshold <= 1:
            raise ValueError("Similarity threshold must be between 0 and 1")
        self._ensure_started()

        key = fingerprint(prompt, context)
        result = self._get_exact(key)
        if result is not None:
            return result

        if self._config.enable_semantic_matching:
            threshold = (
                self._config.similarity_threshold
                if similarity_threshold is None
                else similarity_threshold
            )
            match = self._matcher.find_best_match(
                prompt,
                tiers=[self._memory.peek, self._durable_peek],
                threshold=threshold,
                is_expired=self._is_expired,
            )
            if match is not None:
                self._record("semantic_hits")
                logger.debug(
                    "Semantic cache hit %s (similarity=%.2f)",
                    short_key(match.entry.fingerprint),
                    match.similarity,
                )
                return CacheResult(
                    payload=match.entry.payload,
                    served_by=ServedBy.SEMANTIC,
                    fingerprint=match.entry.fingerprint,
                    similarity=match.similarity,
                )

        self._record("misses")
        logger.debug("Cache miss %s", short_key(key))
        return None

    def _get_exact(self, key: str) -> CacheResult | None:
        with self._key_lock(key):
            entry = self._memory.get(key)
            if entry is not None:
                if not self._is_expired(entry):
                    self._record("memory_hits")
                    logger.debug("Memory cache hit %s", short_key(key))
                    return CacheResult(entry.payload, ServedBy.EXACT_MEMORY, key)
                self._memory.remove(key)
                self._record("expired")

            if self._durable is None:
                return None
            try:
                entry = self._durable_call(self._durable.get, key)
            except DurableStoreError as e:
                logger.warning("Durable read failed for %s: %s", short_key(key), e)
                return None
            if entry is None:
                return None
            if self._is_expired(entry):
                self._remove_durable(key)
                self._record("expired")
                return None

            entry.touch(self._clock())
            if self._memory.put(key, entry) is not None:
                self._record("evictions")
            if self._config.enable_semantic_matching:
                self._matcher.index(entry.prompt, key)
            self._record("durable_hits")
            logger.debug("Durable cache hit %s, promoted to memory", short_key(key))
            return CacheResult(entry.payload, ServedBy.EXACT_DURABLE, key)

    def set(self, prompt: str, context: str | None, payload: Any) -> WriteResult:
        """Cache a payload for (prompt, context), writing through every tier.

        Returns:
            WriteResult; `warning` is set when the durable write failed. The
            entry is served from memory either way.
        """
        self._ensure_started()

        key = fingerprint(prompt, context)
        entry = CacheEntry.create(key, prompt, context, payload, now=self._clock())
        persisted = False
        warning = None

        with self._key_lock(key):
            if self._memory.put(key, entry) is not None:
                self._record("evictions")

            if self._durable is not None:
                try:
                    evicted = self._durable_call(self._durable.put, key, entry)
                    persisted = True
                    if evicted:
                        self._record("durable_evictions", len(evicted))
                except DurableStoreError as e:
                    warning = f"Durable write failed: {e}"
                    self._record("write_failures")
                    logger.warning("Durable write failed for %s: %s", short_key(key), e)

        if self._config.enable_semantic_matching:
            self._matcher.index(prompt, key)
        self._record("writes")
        logger.debug("Response cached %s", short_key(key))
        return WriteResult(fingerprint=key, persisted=persisted, warning=warning)

    def invalidate(self, prompt: str, context: str | None = None) -> bool:
        """Remove the entry for (prompt, context) from every tier.

        Token postings are left in place and filtered at read time.

        Returns:
            True if an entry was removed, False if none existed
        """
        self._ensure_started()

        key = fingerprint(prompt, context)
        with self._key_lock(key):
            removed = self._memory.remove(key)
            if self._durable is not None:
                removed = self._remove_durable(key) or removed

        if removed:
            self._record("invalidations")
            logger.debug("Cache entry invalidated %s", short_key(key))
        return removed

    def _remove_durable(self, key: str) -> bool:
        if self._durable is None:
            return False
        try:
            return self._durable_call(self._durable.remove, key)
        except DurableStoreError as e:
            logger.warning("Durable remove failed for %s: %s", short_key(key), e)
            return False

    def warm(self, entries: Iterable[WarmItem]) -> int:
        """Pre-populate the cache; equivalent to calling `set` for each entry.

        Args:
            entries: (prompt, context, payload) tuples or mappings with
                "prompt", optional "context" and "payload" keys

        Returns:
            Number of entries written
        """
        items = list(entries)
        logger.info("Warming cache with %d entries", len(items))

        count = 0
        for item in items:
            if isinstance(item, Mapping):
                self.set(item["prompt"], item.get("context"), item["payload"])
            else:
                prompt, context, payload = item
                self.set(prompt, context, payload)
            count += 1
        return count

    # Administration

    def clear(self, include_durable: bool = True) -> None:
        """Empty the tiers and the token index and reset statistics.

        Args:
            include_durable: Also delete persisted records. Pass False to
                drop only the memory tier; the token index is kept so
                persisted records stay reachable by approximate match.
        """
        self._ensure_started()

        self._memory.clear()
        if include_durable or self._durable is None:
            self._matcher.clear()
        if include_durable and self._durable is not None:
            try:
                self._durable_call(
                    self._durable.clear,
                    timeout=self._config.durable_timeout * BULK_TIMEOUT_FACTOR,
                )
            except DurableStoreError as e:
                logger.warning("Failed to clear durable storage: %s", e)
        with self._stats_lock:
            self._stats = CacheStatistics()
        logger.info("Cache cleared")

    def sweep(self) -> int:
        """Remove expired entries from every tier.

        Returns:
            Number of distinct entries purged
        """
        self._ensure_started()
        return self._sweep()

    def _sweep(self) -> int:
        # Keys are snapshotted first; each removal takes only its own key lock.
        purged: set[str] = set()

        for key in self._memory.keys():
            with self._key_lock(key):
                entry = self._memory.peek(key)
                if entry is not None and self._is_expired(entry):
                    self._memory.remove(key)
                    purged.add(key)

        if self._durable is not None:
            try:
                keys = self._durable_call(
                    self._durable.list_keys,
                    timeout=self._config.durable_timeout * BULK_TIMEOUT_FACTOR,
                )
            except DurableStoreError as e:
                logger.warning("Durable sweep skipped: %s", e)
                keys = []
            for key in keys:
                with self._key_lock(key):
                    entry = self._durable_peek(key)
                    if entry is not None and self._is_expired(entry):
                        self._remove_durable(key)
                        purged.add(key)

        if purged:
            self._record("expired", len(purged))
            logger.debug("Cleaned %d expired cache entries", len(purged))
        return len(purged)

    def stats(self) -> dict[str, float | int]:
        """Get cache statistics.

        Returns:
            Hit counts by tier, misses, writes, evictions and sizes
        """
        with self._stats_lock:
            data = self._stats.to_dict()
        data["memory_size"] = self._memory.size()
        data["semantic_index_size"] = self._matcher.token_count
        return data

    def health(self) -> HealthReport:
        """Report hit rate, memory occupancy and tuning recommendations."""
        self._ensure_started()
        with self._stats_lock:
            stats = replace(self._stats)

        healthy = True
        if self._durable is not None:
            try:
                healthy = self._durable_call(self._durable.health_check)
            except DurableStoreError as e:
                logger.warning("Durable health check failed: %s", e)
                healthy = False

        return HealthReport(
            healthy=healthy,
            hit_rate=stats.hit_rate,
            memory_current=self._memory.size(),
            memory_max=self._config.max_memory_items,
            recommendations=self._recommendations(stats),
        )

    def _recommendations(self, stats: CacheStatistics) -> list[Recommendation]:
        recommendations = []
        if stats.total_requests > 0 and stats.hit_rate < LOW_HIT_RATE:
            recommendations.append(
                Recommendation(
                    type="low-hit-rate",
                    message="Cache hit rate is low",
                    suggestion="Consider increasing TTL or enabling semantic matching",
                )
            )
        if stats.evictions > stats.writes * HIGH_EVICTION_RATIO:
            recommendations.append(
                Recommendation(
                    type="high-evictions",
                    message="High eviction rate detected",
                    suggestion="Consider increasing max_memory_items",
                )
            )
        if self._memory.is_full:
            recommendations.append(
                Recommendation(
                    type="cache-full",
                    message="Memory cache is at capacity",
                    suggestion="Increase max_memory_items or rely on durable storage",
                )
            )
        return recommendations

    def set_threshold(self, threshold: float) -> None:
        """Update the similarity threshold.

        Args:
            threshold: New threshold value (0-1, higher = more strict)
        """
        if not 0 <= threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")
        self._config = replace(self._config, similarity_threshold=threshold)

    @property
    def threshold(self) -> float:
        """Get current similarity threshold."""
        return self._config.similarity_threshold

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def memory(self) -> MemoryTier:
        """Get the memory tier (for testing)."""
        return self._memory

    @property
    def durable(self) -> DurableStore | None:
        """Get the durable tier (for testing)."""
        return self._durable
