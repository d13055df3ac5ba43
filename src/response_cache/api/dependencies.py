"""FastAPI dependencies and application lifespan.

The CacheService and its CacheHandler live on app.state for the lifetime
of the application; route functions receive the handler through HandlerDep
instead of importing module globals.
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from response_cache.handlers import CacheHandler
from response_cache.services import CacheService

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Builds the cache service (via `app.state.service_factory` when one is
    set, otherwise from environment settings), starts it, and stores it
    and its handler in app.state. On shutdown the service runs its final
    sweep and is removed from app.state.
    """
    factory = getattr(app.state, "service_factory", None) or CacheService.create
    cache_service = factory()
    cache_service.start()

    app.state.cache_service = cache_service
    app.state.cache_handler = CacheHandler(cache_service=cache_service)
    logger.info("Cache service initialized (threshold=%s)", cache_service.threshold)

    yield

    cache_service.shutdown()
    del app.state.cache_handler
    del app.state.cache_service
    logger.info("Cache service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
