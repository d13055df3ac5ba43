"""File-system implementation of DurableStore.

Each entry lives in `<directory>/<fingerprint>.json`. Writes go to a
temporary file in the same directory and are moved into place with
os.replace, so a concurrent reader sees either the old record or the new
one, never a partial write.
"""

import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from response_cache.config import settings
from response_cache.entities import CacheEntry
from response_cache.exceptions import DurableReadError, DurableWriteError
from response_cache.keys import short_key
from response_cache.models import decode_entry, encode_entry

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"


class FileDurableStore:
    """Directory-backed durable tier with LRU capacity enforcement.

    This class satisfies the DurableStore protocol through structural
    typing - no explicit inheritance needed.

    Recency is tracked in memory and seeded from file modification times
    the first time the store is used, so reads never rewrite records.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        max_items: int = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the file store.

        Args:
            directory: Directory holding the records. Created if missing.
            max_items: Maximum number of persisted records.
            clock: Source of Unix timestamps for recency tracking.
        """
        self._dir = Path(directory)
        self._max_items = max_items
        self._clock = clock
        self._lock = threading.RLock()
        self._recency: dict[str, float] | None = None

    @classmethod
    def create(
        cls,
        directory: str | os.PathLike[str] | None = None,
        max_items: int | None = None,
    ) -> "FileDurableStore":
        """Factory method to create FileDurableStore with defaults.

        Args:
            directory: Record directory. If None, uses settings.
            max_items: Capacity. If None, uses settings.

        Returns:
            Configured FileDurableStore
        """
        return cls(
            directory=directory or settings.cache_dir,
            max_items=max_items or settings.cache_max_durable_items,
        )

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}{RECORD_SUFFIX}"

    def _record_paths(self) -> list[Path]:
        if not self._dir.is_dir():
            return []
        return [p for p in self._dir.iterdir() if p.suffix == RECORD_SUFFIX]

    def _temp_paths(self) -> list[Path]:
        if not self._dir.is_dir():
            return []
        return [p for p in self._dir.iterdir() if p.suffix == TEMP_SUFFIX]

    def _index(self) -> dict[str, float]:
        # Caller holds the lock.
        if self._recency is None:
            recency: dict[str, float] = {}
            for path in self._record_paths():
                try:
                    recency[path.stem] = path.stat().st_mtime
                except FileNotFoundError:
                    continue
            self._recency = recency
        return self._recency

    def _read(self, key: str) -> CacheEntry | None:
        path = self._path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            with self._lock:
                self._index().pop(key, None)
            return None
        except OSError as e:
            raise DurableReadError(f"Failed to read {path}: {e}") from e

        try:
            entry = decode_entry(raw)
        except ValidationError as e:
            logger.warning("Removing corrupt cache record %s: %s", short_key(key), e)
            self.remove(key)
            return None

        if entry.fingerprint != key:
            logger.warning("Removing misfiled cache record %s", short_key(key))
            self.remove(key)
            return None
        return entry

    def get(self, key: str) -> CacheEntry | None:
        entry = self._read(key)
        if entry is not None:
            with self._lock:
                self._index()[key] = self._clock()
        return entry

    def peek(self, key: str) -> CacheEntry | None:
        return self._read(key)

    def put(self, key: str, entry: CacheEntry) -> list[str]:
        try:
            data = encode_entry(entry)
        except (ValueError, TypeError) as e:
            raise DurableWriteError(f"Payload for {short_key(key)} is not serializable: {e}") from e

        tmp_name = None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._dir,
                prefix=f".{key[:8]}-",
                suffix=TEMP_SUFFIX,
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path(key))
        except (OSError, UnicodeError) as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise DurableWriteError(f"Failed to persist {short_key(key)}: {e}") from e

        with self._lock:
            index = self._index()
            index[key] = max(entry.accessed_at, self._clock())
            return self._enforce_capacity(index)

    def _enforce_capacity(self, index: dict[str, float]) -> list[str]:
        # Caller holds the lock.
        evicted = []
        while len(index) > self._max_items:
            victim = min(index, key=index.__getitem__)
            del index[victim]
            self._path(victim).unlink(missing_ok=True)
            evicted.append(victim)
        if evicted:
            logger.debug("Evicted %d durable records", len(evicted))
        return evicted

    def remove(self, key: str) -> bool:
        with self._lock:
            self._index().pop(key, None)
            try:
                self._path(key).unlink()
            except FileNotFoundError:
                return False
            except OSError as e:
                logger.warning("Failed to remove cache record %s: %s", short_key(key), e)
                return False
        return True

    def list_keys(self) -> list[str]:
        return sorted(path.stem for path in self._record_paths())

    def load_all(self, limit: int, ttl: float, now: float) -> list[tuple[str, CacheEntry]]:
        with self._lock:
            ordered = sorted(self._index().items(), key=lambda item: item[1], reverse=True)

        loaded = []
        for key, _ in ordered:
            if len(loaded) >= limit:
                break
            entry = self._read(key)
            if entry is None or entry.is_expired(now, ttl):
                continue
            loaded.append((key, entry))
        return loaded

    def clear(self) -> int:
        """Delete every record, plus temp files left behind by interrupted writes.

        Returns:
            Number of records deleted
        """
        count = 0
        with self._lock:
            for path in self._record_paths():
                try:
                    path.unlink()
                    count += 1
                except FileNotFoundError:
                    continue
            for path in self._temp_paths():
                path.unlink(missing_ok=True)
            self._recency = {}
        return count

    def count(self) -> int:
        with self._lock:
            return len(self._index())

    def health_check(self) -> bool:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._dir, os.W_OK)

    @property
    def directory(self) -> Path:
        return self._dir
