from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from response_cache.api.dependencies import HandlerDep, lifespan
from response_cache.config import configure_logging, settings
from response_cache.dto import (
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    LookupRequest,
    LookupResponse,
    StatsResponse,
    StoreRequest,
    StoreResponse,
    SweepResponse,
    ThresholdRequest,
    WarmRequest,
    WarmResponse,
)
from response_cache.services import CacheService

API_NAME = "Response Cache API"
API_VERSION = "0.1.0"
API_DESCRIPTION = "Tiered response cache with exact and approximate-match lookup"


def create_app(service_factory: Callable[[], CacheService] | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        service_factory: Builds the CacheService at startup. Defaults to
            CacheService.create (settings from the environment).
    """
    app = FastAPI(
        title=API_NAME,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.service_factory = service_factory

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_NAME,
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "endpoints": {
                "cache": "/cache",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep, response: Response) -> HealthCheckResponse:
        """Health check endpoint; 503 when the durable backend is unreachable."""
        result = await handler.health_check()
        if not result.healthy:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return result

    @app.post("/cache/lookup", response_model=LookupResponse)
    async def lookup(request: LookupRequest, handler: HandlerDep) -> LookupResponse:
        """Look up a cached response by exact or approximate match."""
        return await handler.lookup(request)

    @app.post("/cache/store", response_model=StoreResponse)
    async def store(request: StoreRequest, handler: HandlerDep) -> StoreResponse:
        """Cache a generated response."""
        return await handler.store(request)

    @app.post("/cache/invalidate", response_model=InvalidateResponse)
    async def invalidate(request: InvalidateRequest, handler: HandlerDep) -> InvalidateResponse:
        """Remove a single cached entry."""
        return await handler.invalidate(request)

    @app.post("/cache/warm", response_model=WarmResponse)
    async def warm(request: WarmRequest, handler: HandlerDep) -> WarmResponse:
        """Pre-populate the cache."""
        return await handler.warm(request)

    @app.post("/cache/sweep", response_model=SweepResponse)
    async def sweep(handler: HandlerDep) -> SweepResponse:
        """Purge expired entries now instead of waiting for the background sweep."""
        return await handler.sweep()

    @app.delete("/cache", response_model=dict[str, Any])
    async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
        """Clear all entries and reset statistics."""
        return await handler.clear_cache()

    @app.get("/cache/stats", response_model=StatsResponse)
    async def get_stats(handler: HandlerDep) -> StatsResponse:
        """Get cache statistics."""
        return await handler.get_stats()

    @app.post("/cache/threshold", response_model=dict[str, Any])
    async def set_threshold(request: ThresholdRequest, handler: HandlerDep) -> dict[str, Any]:
        """Update the semantic similarity threshold."""
        return await handler.set_threshold(request.threshold)

    @app.get("/cache/threshold", response_model=dict[str, float])
    async def get_threshold(handler: HandlerDep) -> dict[str, float]:
        """Get the current semantic similarity threshold."""
        return await handler.get_threshold()

    return app


app = create_app()


def run_server() -> None:
    """Run the API with uvicorn using environment settings."""
    import uvicorn

    configure_logging()
    uvicorn.run(
        "response_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    run_server()
