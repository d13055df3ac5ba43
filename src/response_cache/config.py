import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

from response_cache.exceptions import ConfigurationError

load_dotenv()

DURABLE_BACKENDS = ("file", "redis")


@dataclass(frozen=True)
class CacheConfig:
    """Options recognized by the response cache.

    Attributes:
        max_memory_items: Capacity of the in-process tier, in entries.
        max_durable_items: Capacity of the durable tier, in entries (LRU enforced).
        ttl: Expiry horizon in seconds, measured from an entry's creation.
        sweep_interval: Seconds between background expiry sweeps.
        enable_durable_persistence: Write through to the durable tier.
        enable_semantic_matching: Fall back to token-overlap matching on exact misses.
        similarity_threshold: Minimum token overlap ratio (0-1) for a semantic hit.
        cache_dir: Directory used by the file backend.
        durable_backend: Either "file" or "redis".
        durable_timeout: Upper bound in seconds for any single durable operation.
        key_prefix: Namespace for keys written by the redis backend.
    """

    max_memory_items: int = 1000
    max_durable_items: int = 10000
    ttl: float = 15 * 60
    sweep_interval: float = 5 * 60
    enable_durable_persistence: bool = True
    enable_semantic_matching: bool = True
    similarity_threshold: float = 0.85
    cache_dir: str = ".cache/llm-responses"
    durable_backend: str = "file"
    durable_timeout: float = 2.0
    key_prefix: str = "response_cache"

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        if self.max_memory_items < 1:
            raise ConfigurationError(
                f"max_memory_items must be at least 1, got {self.max_memory_items}"
            )
        if self.max_durable_items < 1:
            raise ConfigurationError(
                f"max_durable_items must be at least 1, got {self.max_durable_items}"
            )
        if self.ttl <= 0:
            raise ConfigurationError(f"ttl must be positive, got {self.ttl}")
        if self.sweep_interval <= 0:
            raise ConfigurationError(f"sweep_interval must be positive, got {self.sweep_interval}")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError(
                f"similarity_threshold must be between 0 and 1, got {self.similarity_threshold}"
            )
        if self.durable_backend not in DURABLE_BACKENDS:
            raise ConfigurationError(
                f"durable_backend must be one of {list(DURABLE_BACKENDS)}, "
                f"got {self.durable_backend!r}"
            )
        if self.durable_timeout <= 0:
            raise ConfigurationError(
                f"durable_timeout must be positive, got {self.durable_timeout}"
            )


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_max_memory_items: int = int(os.getenv("CACHE_MAX_MEMORY_ITEMS", "1000"))
    cache_max_durable_items: int = int(os.getenv("CACHE_MAX_DURABLE_ITEMS", "10000"))
    cache_ttl: float = float(os.getenv("CACHE_TTL", "900"))  # 15 minutes
    cache_sweep_interval: float = float(os.getenv("CACHE_SWEEP_INTERVAL", "300"))
    cache_enable_durable: bool = _env_bool("CACHE_ENABLE_DURABLE", "true")
    cache_enable_semantic: bool = _env_bool("CACHE_ENABLE_SEMANTIC", "true")
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.85"))
    cache_dir: str = os.getenv("CACHE_DIR", ".cache/llm-responses")
    cache_durable_backend: str = os.getenv("CACHE_DURABLE_BACKEND", "file")
    cache_durable_timeout: float = float(os.getenv("CACHE_DURABLE_TIMEOUT", "2.0"))
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "response_cache")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "false")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def to_cache_config(self) -> CacheConfig:
        """Build a validated CacheConfig from these settings.

        Raises:
            ConfigurationError: If any cache option is out of range.
        """
        return CacheConfig(
            max_memory_items=self.cache_max_memory_items,
            max_durable_items=self.cache_max_durable_items,
            ttl=self.cache_ttl,
            sweep_interval=self.cache_sweep_interval,
            enable_durable_persistence=self.cache_enable_durable,
            enable_semantic_matching=self.cache_enable_semantic,
            similarity_threshold=self.cache_similarity_threshold,
            cache_dir=self.cache_dir,
            durable_backend=self.cache_durable_backend,
            durable_timeout=self.cache_durable_timeout,
            key_prefix=self.cache_key_prefix,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(timeout: float | None = None) -> redis.Redis:
    """Create a Redis client instance.

    Args:
        timeout: Socket timeout in seconds. Defaults to the durable timeout.
    """
    timeout = timeout or settings.cache_durable_timeout
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the API server and scripts."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
