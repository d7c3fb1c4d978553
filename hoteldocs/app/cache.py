"""TTL cache abstraction with in-memory and Redis backends.

Callers depend on the TTLCache protocol and receive an instance by injection,
so the in-process cache can be swapped for Redis without touching call sites.
"""

import json
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

import redis


class TTLCache(Protocol):
    """Key/value cache with per-entry expiry."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value for ttl_seconds."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...

    def sweep(self) -> int:
        """Evict expired entries; return how many were removed."""
        ...


@dataclass
class CacheEntry:
    """Cached value with its expiry time."""

    value: Any
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        """Check if cache entry is still valid."""
        return now < self.expires_at


class InMemoryTTLCache:
    """Process-local TTL cache.

    Expired entries are evicted when read and by a sweep that set() runs at
    most once per sweep_interval_seconds. Past max_entries the oldest entry is
    dropped.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        *,
        max_entries: int = 10_000,
        sweep_interval_seconds: int = 60,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock or datetime.now
        self._max_entries = max_entries
        self._sweep_interval = timedelta(seconds=sweep_interval_seconds)
        self._last_sweep = self._clock()
        # Callers may use the cache from worker threads
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_fresh(self._clock()):
                return entry.value
            del self._entries[key]
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        now = self._clock()
        if now - self._last_sweep >= self._sweep_interval:
            self.sweep()

        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_entries:
                # first key is the oldest insert
                del self._entries[next(iter(self._entries))]
            self._entries[key] = CacheEntry(
                value=value, expires_at=now + timedelta(seconds=ttl_seconds)
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
            for key in expired:
                del self._entries[key]
            self._last_sweep = now
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisTTLCache:
    """Redis-backed TTL cache storing JSON-encoded values under a key prefix."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "hoteldocs") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> Any | None:
        raw = self._redis.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._redis.setex(self._key(key), ttl_seconds, json.dumps(value))

    def delete(self, key: str) -> None:
        self._redis.delete(self._key(key))

    def sweep(self) -> int:
        # Redis expires keys itself.
        return 0


def create_cache(redis_url: str | None) -> TTLCache:
    """Build the configured cache backend."""
    if redis_url:
        client = redis.from_url(redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        return RedisTTLCache(client)
    return InMemoryTTLCache()
