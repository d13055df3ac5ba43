"""Exception hierarchy for the response cache.

Only ConfigurationError escapes to callers; durable store errors are
raised by the repositories and absorbed by CacheService, which degrades
them to misses or warnings.
"""


class CacheError(Exception):
    """Base class for response cache errors."""


class ConfigurationError(CacheError, ValueError):
    """Raised when the cache is constructed with invalid options."""


class DurableStoreError(CacheError):
    """A durable tier operation failed."""


class DurableReadError(DurableStoreError):
    """A durable record could not be read."""


class DurableWriteError(DurableStoreError):
    """A durable record could not be persisted."""


class DurableTimeoutError(DurableStoreError):
    """A durable operation exceeded its time bound."""
