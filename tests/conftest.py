"""
Shared fixtures for the response cache tests.
"""

import fnmatch

import pytest

from response_cache.config import CacheConfig
from response_cache.services import CacheService

START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """Queues commands and runs them on execute()."""

    def __init__(self, client: "FakeRedis") -> None:
        self._client = client
        self._calls: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._calls.append((name, args, kwargs))
            return self

        return queue

    def execute(self) -> list:
        if self._client.fail_with is not None:
            raise self._client.fail_with
        results = [getattr(self._client, name)(*args, **kwargs) for name, args, kwargs in self._calls]
        self._calls = []
        return results


class FakeRedis:
    """In-memory stand-in for the subset of redis.Redis the durable store uses."""

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiries: dict[str, int] = {}
        self.fail_with: Exception | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def ping(self) -> bool:
        self._check()
        return True

    def get(self, key: str) -> bytes | None:
        self._check()
        return self.values.get(key)

    def set(self, key: str, value, ex: int | None = None) -> bool:
        self._check()
        self.values[key] = value.encode() if isinstance(value, str) else value
        if ex is not None:
            self.expiries[key] = ex
        return True

    def delete(self, *keys: str) -> int:
        self._check()
        count = 0
        for key in keys:
            if self.values.pop(key, None) is not None or self.zsets.pop(key, None) is not None:
                count += 1
        return count

    def zadd(self, name: str, mapping: dict[str, float], xx: bool = False) -> int:
        self._check()
        zset = self.zsets.setdefault(name, {})
        added = 0
        for member, score in mapping.items():
            if xx and member not in zset:
                continue
            if member not in zset:
                added += 1
            zset[member] = score
        return added

    def zrem(self, name: str, *members: str) -> int:
        self._check()
        zset = self.zsets.get(name, {})
        return sum(1 for m in members if zset.pop(m, None) is not None)

    def zcard(self, name: str) -> int:
        self._check()
        return len(self.zsets.get(name, {}))

    def _ordered(self, name: str) -> list[bytes]:
        zset = self.zsets.get(name, {})
        return [m.encode() for m, _ in sorted(zset.items(), key=lambda item: (item[1], item[0]))]

    @staticmethod
    def _slice(items: list, start: int, end: int) -> list:
        return items[start:] if end == -1 else items[start : end + 1]

    def zrange(self, name: str, start: int, end: int) -> list[bytes]:
        self._check()
        return self._slice(self._ordered(name), start, end)

    def zrevrange(self, name: str, start: int, end: int) -> list[bytes]:
        self._check()
        return self._slice(list(reversed(self._ordered(name))), start, end)

    def scan_iter(self, match: str = "*"):
        self._check()
        return iter([k for k in list(self.values) if fnmatch.fnmatch(k, match)])

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path):
    """Directory for file-backed durable records."""
    return tmp_path / "llm-responses"


@pytest.fixture
def config(cache_dir):
    """Default options for an isolated cache."""
    return CacheConfig(
        max_memory_items=100,
        ttl=60,
        sweep_interval=3600,
        cache_dir=str(cache_dir),
    )


@pytest.fixture
def service(config, clock):
    """Create a started cache service and shut it down afterwards."""
    cache = CacheService(config, clock=clock)
    cache.start()
    yield cache
    cache.shutdown()


@pytest.fixture
def fake_redis():
    """Create an in-memory fake redis client."""
    return FakeRedis()
