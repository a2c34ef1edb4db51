# Key-value stores for rate-limit counters: get / put-with-TTL only.
# MemoryKeyValueStore keeps counters in a per-process TLRU cache (cachetools);
# RedisKeyValueStore shares them across instances via redis.asyncio.

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import redis.asyncio as redis
import structlog
from cachetools import TLRUCache  # type: ignore[import-untyped]
from redis.exceptions import RedisError

from bucketview.exceptions import StorageUnavailableError

logger = structlog.get_logger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal counter store contract."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""
        ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value, replacing any previous value and expiry."""
        ...

    async def close(self) -> None: ...


def _expires_at(_key: str, entry: tuple[str, int], now: float) -> float:
    return now + entry[1]


class MemoryKeyValueStore:
    """In-process store with per-entry expiry.

    Counters are not shared between processes, so the effective limit is
    per instance. Timer is injectable for tests.
    """

    def __init__(
        self,
        maxsize: int = 100_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TLRUCache[str, tuple[str, int]] = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=timer
        )
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, ttl_seconds)

    async def close(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


class RedisKeyValueStore:
    """Redis-backed store. Redis errors surface as StorageUnavailableError."""

    def __init__(self, url: str, client: redis.Redis | None = None) -> None:
        self._url = url
        self._redis = client or redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

    async def get(self, key: str) -> str | None:
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            raise StorageUnavailableError("Rate limit store", str(e)) from e
        return None if value is None else str(value)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StorageUnavailableError("Rate limit store", str(e)) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._redis.aclose()


def build_kv_store(value: str) -> KeyValueStore | None:
    """Create the counter store named by the RATE_LIMIT_STORE setting.

    "" -> None (rate limiting disabled), "memory" -> MemoryKeyValueStore,
    redis:// / rediss:// / unix:// URLs -> RedisKeyValueStore.
    """
    value = value.strip()
    if not value:
        logger.info("rate_limit_disabled", reason="no RATE_LIMIT_STORE set")
        return None
    if value == "memory":
        logger.info("rate_limit_store", backend="memory")
        return MemoryKeyValueStore()
    if value.startswith(("redis://", "rediss://", "unix://")):
        logger.info("rate_limit_store", backend="redis")
        return RedisKeyValueStore(value)
    raise ValueError(f"Unsupported RATE_LIMIT_STORE value: {value!r}")
