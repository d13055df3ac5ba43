"""
Tests for the response cache API.
"""

import asyncio
import threading

import pytest
from fastapi.testclient import TestClient

from response_cache.api.app import create_app
from response_cache.config import CacheConfig
from response_cache.dto import LookupRequest
from response_cache.handlers import CacheHandler
from response_cache.services import CacheService

QUICKSORT = "explain the quicksort algorithm"


@pytest.fixture
def client(cache_dir):
    """Create a test client backed by an isolated cache."""
    config = CacheConfig(cache_dir=str(cache_dir), sweep_interval=3600)
    app = create_app(service_factory=lambda: CacheService(config))
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Response Cache API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["memory_usage"]["current"] == 0
    assert data["recommendations"] == []


def test_lookup_miss(client):
    response = client.post("/cache/lookup", json={"prompt": QUICKSORT})
    assert response.status_code == 200
    data = response.json()
    assert data["is_hit"] is False
    assert data["payload"] is None
    assert "lookup_time_ms" in data


def test_store_then_lookup_exact(client):
    response = client.post(
        "/cache/store",
        json={"prompt": QUICKSORT, "context": "cs101", "payload": {"content": "divide and conquer"}},
    )
    assert response.status_code == 200
    stored = response.json()
    assert stored["success"] is True
    assert stored["persisted"] is True

    response = client.post("/cache/lookup", json={"prompt": QUICKSORT, "context": "cs101"})
    data = response.json()
    assert data["is_hit"] is True
    assert data["served_by"] == "exact-memory"
    assert data["payload"] == {"content": "divide and conquer"}
    assert data["fingerprint"] == stored["fingerprint"]


def test_lookup_semantic(client):
    client.post("/cache/store", json={"prompt": QUICKSORT, "payload": "answer"})

    data = client.post("/cache/lookup", json={"prompt": "algorithm explain quicksort"}).json()

    assert data["served_by"] == "semantic"
    assert data["similarity"] == 1.0


def test_lookup_threshold_validation(client):
    response = client.post("/cache/lookup", json={"prompt": QUICKSORT, "similarity_threshold": 2})
    assert response.status_code == 422


def test_store_requires_payload(client):
    response = client.post("/cache/store", json={"prompt": QUICKSORT})
    assert response.status_code == 422


def test_invalidate(client):
    client.post("/cache/store", json={"prompt": QUICKSORT, "payload": "answer"})

    first = client.post("/cache/invalidate", json={"prompt": QUICKSORT}).json()
    second = client.post("/cache/invalidate", json={"prompt": QUICKSORT}).json()

    assert first["success"] is True
    assert second["success"] is False


def test_warm_and_stats(client):
    response = client.post(
        "/cache/warm",
        json={
            "entries": [
                {"prompt": "first warm prompt", "payload": 1},
                {"prompt": "second warm prompt", "context": "ctx", "payload": 2},
            ]
        },
    )
    assert response.json()["count"] == 2

    client.post("/cache/lookup", json={"prompt": "first warm prompt"})
    stats = client.get("/cache/stats").json()
    assert stats["writes"] == 2
    assert stats["memory_hits"] == 1
    assert stats["memory_size"] == 2


def test_sweep(client):
    response = client.post("/cache/sweep")
    assert response.status_code == 200
    assert response.json() == {"purged": 0}


def test_clear(client):
    client.post("/cache/store", json={"prompt": QUICKSORT, "payload": "answer"})

    response = client.delete("/cache")
    assert response.status_code == 200

    stats = client.get("/cache/stats").json()
    assert stats["memory_size"] == 0
    assert stats["writes"] == 0


def test_threshold(client):
    response = client.post("/cache/threshold", json={"threshold": 0.6})
    assert response.status_code == 200

    response = client.get("/cache/threshold")
    assert response.json() == {"threshold": 0.6}

    response = client.post("/cache/threshold", json={"threshold": 1.5})
    assert response.status_code == 422


class RecordingService:
    """Stands in for CacheService and records which thread served each call."""

    def __init__(self):
        self.threads = []

    def get(self, prompt, context=None, similarity_threshold=None):
        self.threads.append(threading.get_ident())
        return None


def test_lookup_runs_off_the_event_loop_thread():
    service = RecordingService()
    handler = CacheHandler(service)

    response = asyncio.run(handler.lookup(LookupRequest(prompt=QUICKSORT)))

    assert response.is_hit is False
    assert len(service.threads) == 1
    assert service.threads[0] != threading.get_ident()
