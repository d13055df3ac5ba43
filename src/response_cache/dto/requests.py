"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class LookupRequest(BaseModel):
    """Request DTO for looking up a cached response."""

    prompt: str = Field(..., description="The prompt to look up", min_length=1)
    context: str | None = Field(None, description="Optional context the prompt was issued in")
    similarity_threshold: float | None = Field(
        None,
        description="Override the semantic similarity threshold (0-1, higher = more strict)",
        ge=0.0,
        le=1.0,
    )


class StoreRequest(BaseModel):
    """Request DTO for caching a response."""

    prompt: str = Field(..., description="The original prompt", min_length=1)
    context: str | None = Field(None, description="Optional context the prompt was issued in")
    payload: Any = Field(..., description="The generated result to cache (any JSON value)")


class InvalidateRequest(BaseModel):
    """Request DTO for invalidating a single entry."""

    prompt: str = Field(..., description="The prompt of the entry to remove", min_length=1)
    context: str | None = Field(None, description="Context of the entry to remove")


class WarmEntry(BaseModel):
    """A single entry for bulk pre-population."""

    prompt: str = Field(..., min_length=1)
    context: str | None = None
    payload: Any = Field(...)


class WarmRequest(BaseModel):
    """Request DTO for warming the cache."""

    entries: list[WarmEntry] = Field(..., description="Entries to pre-populate")


class ThresholdRequest(BaseModel):
    """Request DTO for updating the similarity threshold."""

    threshold: float = Field(..., ge=0.0, le=1.0)
