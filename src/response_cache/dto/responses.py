"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class LookupResponse(BaseModel):
    """Response DTO for a cache lookup."""

    prompt: str = Field(..., description="The original query prompt")
    is_hit: bool = Field(..., description="Whether a cached response was found")
    payload: Any = Field(None, description="The cached payload, if any")
    served_by: str | None = Field(
        None,
        description="Layer that served the hit: exact-memory, exact-durable or semantic",
    )
    similarity: float | None = Field(None, description="Token overlap ratio", ge=0.0, le=1.0)
    fingerprint: str | None = Field(None, description="Key of the returned entry")
    lookup_time_ms: float = Field(..., description="Time taken for the lookup in milliseconds")


class StoreResponse(BaseModel):
    """Response DTO for a cache write."""

    success: bool = Field(..., description="Whether the entry is being served")
    fingerprint: str = Field(..., description="Key of the stored entry")
    persisted: bool = Field(..., description="Whether the durable write succeeded")
    warning: str | None = Field(None, description="Reason for a degraded write")


class InvalidateResponse(BaseModel):
    """Response DTO for an invalidation."""

    success: bool = Field(..., description="Whether an entry was removed")
    fingerprint: str = Field(..., description="Key that was invalidated")


class WarmResponse(BaseModel):
    """Response DTO for cache warming."""

    success: bool
    count: int = Field(..., ge=0)
    message: str


class SweepResponse(BaseModel):
    """Response DTO for a manual sweep."""

    purged: int = Field(..., ge=0, description="Number of expired entries removed")


class StatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    memory_hits: int = Field(..., ge=0)
    durable_hits: int = Field(..., ge=0)
    semantic_hits: int = Field(..., ge=0)
    writes: int = Field(..., ge=0)
    write_failures: int = Field(..., ge=0)
    evictions: int = Field(..., ge=0)
    durable_evictions: int = Field(..., ge=0)
    expired: int = Field(..., ge=0)
    invalidations: int = Field(..., ge=0)
    total_requests: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0)
    memory_size: int = Field(..., ge=0)
    semantic_index_size: int = Field(..., ge=0)


class MemoryUsage(BaseModel):
    """Memory tier occupancy."""

    current: int = Field(..., ge=0)
    max: int = Field(..., ge=1)
    ratio: float = Field(..., ge=0.0, le=1.0)


class RecommendationItem(BaseModel):
    """Advisory tuning hint."""

    type: str
    message: str
    suggestion: str


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    healthy: bool = Field(..., description="Whether the durable backend is reachable")
    hit_rate: float = Field(..., ge=0.0, le=1.0)
    memory_usage: MemoryUsage
    recommendations: list[RecommendationItem] = Field(default_factory=list)
