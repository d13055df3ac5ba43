"""Repository layer for data access.

MemoryTier is the bounded in-process tier. The durable tiers satisfy the
DurableStore protocol (structural typing, not inheritance), so any class
implementing the required methods can stand in for them.
"""

from response_cache.protocols import DurableStore

from .file_repository import FileDurableStore
from .memory_tier import MemoryTier
from .redis_repository import RedisDurableStore

__all__ = [
    "DurableStore",
    "FileDurableStore",
    "MemoryTier",
    "RedisDurableStore",
]
