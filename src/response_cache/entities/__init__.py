"""Domain entities for internal representation.

These are plain dataclasses used by services and repositories. They are
NOT used for API contracts - use DTOs from the dto package for that, and
the models module for the persisted record format.
"""

from .cache_entry import CacheEntry
from .cache_result import CacheResult, ServedBy, WriteResult

__all__ = ["CacheEntry", "CacheResult", "ServedBy", "WriteResult"]
