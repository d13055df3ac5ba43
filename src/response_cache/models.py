from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, model_validator

from response_cache.entities import CacheEntry

RECORD_VERSION = 1


class PersistedEntry(BaseModel):
    """Versioned on-disk / in-redis representation of a CacheEntry."""

    version: Literal[1] = RECORD_VERSION
    fingerprint: str
    prompt: str
    context: str | None = None
    payload: Any = None
    created_at: float
    accessed_at: float
    access_count: int = 1

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _check_access_time(self) -> "PersistedEntry":
        if self.accessed_at < self.created_at:
            raise ValueError("accessed_at precedes created_at")
        return self

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> "PersistedEntry":
        return cls(
            fingerprint=entry.fingerprint,
            prompt=entry.prompt,
            context=entry.context,
            payload=entry.payload,
            created_at=entry.created_at,
            accessed_at=entry.accessed_at,
            access_count=entry.access_count,
        )

    def to_entry(self) -> CacheEntry:
        return CacheEntry(
            fingerprint=self.fingerprint,
            prompt=self.prompt,
            context=self.context,
            payload=self.payload,
            created_at=self.created_at,
            accessed_at=self.accessed_at,
            access_count=self.access_count,
        )


def encode_entry(entry: CacheEntry) -> str:
    """Serialize an entry to its persisted JSON form."""
    return PersistedEntry.from_entry(entry).model_dump_json()


def decode_entry(raw: str | bytes) -> CacheEntry:
    """Deserialize a persisted record.

    Raises:
        pydantic.ValidationError: If the record is malformed or of an unknown version.
    """
    return PersistedEntry.model_validate_json(raw).to_entry()


@dataclass
class CacheStatistics:
    """Counters tracked by CacheService."""

    memory_hits: int = 0
    durable_hits: int = 0
    semantic_hits: int = 0
    misses: int = 0
    writes: int = 0
    write_failures: int = 0
    evictions: int = 0
    durable_evictions: int = 0
    expired: int = 0
    invalidations: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.durable_hits + self.semantic_hits

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests

    def to_dict(self) -> dict[str, float | int]:
        """Convert counters to dictionary, including derived values."""
        data: dict[str, float | int] = asdict(self)
        data["hits"] = self.hits
        data["total_requests"] = self.total_requests
        data["hit_rate"] = self.hit_rate
        return data


@dataclass(frozen=True)
class Recommendation:
    """Advisory tuning hint reported by health()."""

    type: str
    message: str
    suggestion: str


@dataclass(frozen=True)
class HealthReport:
    """Snapshot returned by CacheService.health()."""

    healthy: bool
    hit_rate: float
    memory_current: int
    memory_max: int
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def memory_ratio(self) -> float:
        return self.memory_current / self.memory_max if self.memory_max else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "hit_rate": self.hit_rate,
            "memory_usage": {
                "current": self.memory_current,
                "max": self.memory_max,
                "ratio": self.memory_ratio,
            },
            "recommendations": [asdict(r) for r in self.recommendations],
        }
