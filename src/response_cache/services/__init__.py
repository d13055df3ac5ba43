"""Service layer for business logic.

Architecture:
    Handler -> CacheService -> MemoryTier / DurableStore / SemanticMatcher
    (HTTP)  -> (Business)   -> (Data Access)

Usage:
    ```python
    from response_cache.services import CacheService

    # Using factory method (settings from the environment)
    cache = CacheService.create()
    cache = CacheService.create(similarity_threshold=0.9)

    # Or manual creation
    cache = CacheService(config=CacheConfig(), durable_store=store)
    ```
"""

from .cache_service import CacheService
from .matcher import SemanticMatch, SemanticMatcher

__all__ = [
    "CacheService",
    "SemanticMatch",
    "SemanticMatcher",
]
