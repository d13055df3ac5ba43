"""Protocol interfaces for swappable implementations.

Protocols enable:
- Easy swapping of durable backends (files, Redis, ...)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from response_cache.protocols import DurableStore

    store: DurableStore = FileDurableStore(".cache/llm-responses")
    store: DurableStore = RedisDurableStore(client)
    ```
"""

from .durable_store import DurableStore

__all__ = [
    "DurableStore",
]
