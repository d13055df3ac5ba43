"""Lookup and write results returned by CacheService."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ServedBy(str, Enum):
    """Which layer satisfied a lookup."""

    EXACT_MEMORY = "exact-memory"
    EXACT_DURABLE = "exact-durable"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class CacheResult:
    """A cache hit.

    Attributes:
        payload: The cached payload
        served_by: Layer that served the hit
        fingerprint: Key of the entry that was returned
        similarity: Token overlap ratio (1.0 for exact hits)
    """

    payload: Any
    served_by: ServedBy
    fingerprint: str
    similarity: float = 1.0

    @property
    def is_exact(self) -> bool:
        return self.served_by is not ServedBy.SEMANTIC


@dataclass(frozen=True)
class WriteResult:
    """Outcome of CacheService.set.

    The memory tier write always succeeds; `persisted` reports whether the
    durable write did too, and `warning` explains a degraded write.
    """

    fingerprint: str
    persisted: bool
    warning: str | None = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None
