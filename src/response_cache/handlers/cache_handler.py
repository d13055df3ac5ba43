"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
Service calls can block on durable I/O and run in the threadpool.
"""

import time

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from response_cache.dto import (
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    LookupRequest,
    LookupResponse,
    MemoryUsage,
    RecommendationItem,
    StatsResponse,
    StoreRequest,
    StoreResponse,
    SweepResponse,
    WarmRequest,
    WarmResponse,
)
from response_cache.keys import fingerprint
from response_cache.services import CacheService


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates business logic to CacheService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses
    """

    def __init__(self, cache_service: CacheService) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The cache service for business logic (required).
        """
        self._cache = cache_service

    async def lookup(self, request: LookupRequest) -> LookupResponse:
        """Handle POST /cache/lookup requests.

        Raises:
            HTTPException: If an error occurs during the lookup
        """
        try:
            start_time = time.time()
            result = await run_in_threadpool(
                self._cache.get,
                request.prompt,
                request.context,
                similarity_threshold=request.similarity_threshold,
            )
            lookup_time_ms = (time.time() - start_time) * 1000
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to look up cache: {e}",
            ) from e

        if result is None:
            return LookupResponse(
                prompt=request.prompt,
                is_hit=False,
                lookup_time_ms=lookup_time_ms,
            )
        return LookupResponse(
            prompt=request.prompt,
            is_hit=True,
            payload=result.payload,
            served_by=result.served_by.value,
            similarity=result.similarity,
            fingerprint=result.fingerprint,
            lookup_time_ms=lookup_time_ms,
        )

    async def store(self, request: StoreRequest) -> StoreResponse:
        """Handle POST /cache/store requests."""
        try:
            result = await run_in_threadpool(
                self._cache.set, request.prompt, request.context, request.payload
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store entry: {e}",
            ) from e

        return StoreResponse(
            success=True,
            fingerprint=result.fingerprint,
            persisted=result.persisted,
            warning=result.warning,
        )

    async def invalidate(self, request: InvalidateRequest) -> InvalidateResponse:
        """Handle POST /cache/invalidate requests."""
        try:
            removed = await run_in_threadpool(
                self._cache.invalidate, request.prompt, request.context
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to invalidate entry: {e}",
            ) from e

        return InvalidateResponse(
            success=removed,
            fingerprint=fingerprint(request.prompt, request.context),
        )

    async def warm(self, request: WarmRequest) -> WarmResponse:
        """Handle POST /cache/warm requests."""
        try:
            items = [entry.model_dump() for entry in request.entries]
            count = await run_in_threadpool(self._cache.warm, items)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to warm cache: {e}",
            ) from e

        return WarmResponse(success=True, count=count, message=f"Warmed {count} cache entries")

    async def sweep(self) -> SweepResponse:
        """Handle POST /cache/sweep requests."""
        try:
            return SweepResponse(purged=await run_in_threadpool(self._cache.sweep))
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to sweep cache: {e}",
            ) from e

    async def get_stats(self) -> StatsResponse:
        """Handle GET /cache/stats requests."""
        try:
            return StatsResponse(**await run_in_threadpool(self._cache.stats))
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests."""
        try:
            await run_in_threadpool(self._cache.clear)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        return {
            "success": True,
            "message": "Cache cleared successfully",
        }

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        report = await run_in_threadpool(self._cache.health)

        return HealthCheckResponse(
            status="healthy" if report.healthy else "unhealthy",
            healthy=report.healthy,
            hit_rate=report.hit_rate,
            memory_usage=MemoryUsage(
                current=report.memory_current,
                max=report.memory_max,
                ratio=report.memory_ratio,
            ),
            recommendations=[
                RecommendationItem(type=r.type, message=r.message, suggestion=r.suggestion)
                for r in report.recommendations
            ],
        )

    async def set_threshold(self, threshold: float) -> dict:
        """Handle POST /cache/threshold requests."""
        try:
            await run_in_threadpool(self._cache.set_threshold, threshold)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e

        return {
            "message": "Threshold updated",
            "threshold": threshold,
        }

    async def get_threshold(self) -> dict:
        """Handle GET /cache/threshold requests."""
        return {"threshold": self._cache.threshold}
