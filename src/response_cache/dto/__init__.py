"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    InvalidateRequest,
    LookupRequest,
    StoreRequest,
    ThresholdRequest,
    WarmEntry,
    WarmRequest,
)
from .responses import (
    HealthCheckResponse,
    InvalidateResponse,
    LookupResponse,
    MemoryUsage,
    RecommendationItem,
    StatsResponse,
    StoreResponse,
    SweepResponse,
    WarmResponse,
)

__all__ = [
    "LookupRequest",
    "StoreRequest",
    "InvalidateRequest",
    "WarmEntry",
    "WarmRequest",
    "ThresholdRequest",
    "LookupResponse",
    "StoreResponse",
    "InvalidateResponse",
    "WarmResponse",
    "SweepResponse",
    "StatsResponse",
    "MemoryUsage",
    "RecommendationItem",
    "HealthCheckResponse",
]
