"""Response Cache - tiered caching for expensive generated content.

This package caches results such as model completions, keyed by a
fingerprint of (prompt, context), with an approximate-match fallback:

Layers:
    - keys / tokens: Fingerprints and lexical signatures
    - entities: Domain models (internal)
    - protocols: Interface contracts (DurableStore)
    - repositories: Memory tier and durable tiers (files, Redis)
    - services: CacheService (coordinator) and SemanticMatcher
    - handlers / dto / api: HTTP wrapper (FastAPI)

Usage:
    ```python
    from response_cache import CacheConfig, CacheService

    cache = CacheService(CacheConfig(similarity_threshold=0.9))
    cache.start()
    cache.set("explain quicksort", None, {"content": "..."})
    result = cache.get("quicksort explain")   # served_by == ServedBy.SEMANTIC
    cache.shutdown()
    ```

For HTTP API:
    ```python
    from response_cache.api.app import app
    ```
"""

from response_cache.config import CacheConfig, Settings, get_settings, settings
from response_cache.entities import CacheEntry, CacheResult, ServedBy, WriteResult
from response_cache.exceptions import (
    CacheError,
    ConfigurationError,
    DurableReadError,
    DurableStoreError,
    DurableTimeoutError,
    DurableWriteError,
)
from response_cache.keys import fingerprint
from response_cache.protocols import DurableStore
from response_cache.repositories import FileDurableStore, MemoryTier, RedisDurableStore
from response_cache.services import CacheService, SemanticMatcher
from response_cache.tokens import signature

__all__ = [
    # Configuration
    "CacheConfig",
    "Settings",
    "get_settings",
    "settings",
    # Services
    "CacheService",
    "SemanticMatcher",
    # Protocols and repositories
    "DurableStore",
    "FileDurableStore",
    "MemoryTier",
    "RedisDurableStore",
    # Entities
    "CacheEntry",
    "CacheResult",
    "ServedBy",
    "WriteResult",
    # Helpers
    "fingerprint",
    "signature",
    # Errors
    "CacheError",
    "ConfigurationError",
    "DurableStoreError",
    "DurableReadError",
    "DurableWriteError",
    "DurableTimeoutError",
]
