"""
Tests for configuration and the persisted record format.
"""

import pytest
from pydantic import ValidationError

from response_cache.config import CacheConfig, Settings
from response_cache.entities import CacheEntry
from response_cache.exceptions import ConfigurationError
from response_cache.models import CacheStatistics, decode_entry, encode_entry


def test_defaults():
    config = CacheConfig()

    assert config.max_memory_items == 1000
    assert config.ttl == 900
    assert config.sweep_interval == 300
    assert config.similarity_threshold == 0.85
    assert config.enable_durable_persistence is True
    assert config.enable_semantic_matching is True
    assert config.durable_backend == "file"


@pytest.mark.parametrize(
    "options",
    [
        {"similarity_threshold": 1.5},
        {"similarity_threshold": -0.1},
        {"max_memory_items": 0},
        {"max_durable_items": 0},
        {"ttl": 0},
        {"sweep_interval": -1},
        {"durable_timeout": 0},
        {"durable_backend": "s3"},
    ],
)
def test_invalid_options_rejected(options):
    with pytest.raises(ConfigurationError):
        CacheConfig(**options)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError, match="similarity_threshold"):
        CacheConfig(similarity_threshold=2)


def test_settings_build_cache_config(tmp_path):
    settings = Settings(
        cache_max_memory_items=10,
        cache_ttl=30,
        cache_similarity_threshold=0.5,
        cache_dir=str(tmp_path),
        cache_enable_semantic=False,
    )

    config = settings.to_cache_config()

    assert config.max_memory_items == 10
    assert config.ttl == 30
    assert config.similarity_threshold == 0.5
    assert config.cache_dir == str(tmp_path)
    assert config.enable_semantic_matching is False


def test_settings_reject_invalid_cache_options():
    with pytest.raises(ConfigurationError):
        Settings(cache_similarity_threshold=3.0).to_cache_config()


def test_record_round_trip():
    entry = CacheEntry(
        fingerprint="abc",
        prompt="explain recursion",
        context="cs101",
        payload={"content": "see recursion", "usage": [1, 2]},
        created_at=100.0,
        accessed_at=150.5,
        access_count=3,
    )

    assert decode_entry(encode_entry(entry)) == entry


def test_record_rejects_access_before_creation():
    raw = (
        '{"version": 1, "fingerprint": "abc", "prompt": "p", "context": null, '
        '"payload": 1, "created_at": 100.0, "accessed_at": 50.0, "access_count": 1}'
    )

    with pytest.raises(ValidationError):
        decode_entry(raw)


def test_statistics_derived_values():
    stats = CacheStatistics(memory_hits=2, durable_hits=1, semantic_hits=1, misses=4)

    data = stats.to_dict()

    assert data["hits"] == 4
    assert data["total_requests"] == 8
    assert data["hit_rate"] == 0.5
