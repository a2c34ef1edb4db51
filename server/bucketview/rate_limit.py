# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter — per-client request counter in a key-value store
# ─────────────────────────────────────────────────────────────────────────────
# Sliding expiry: every allowed request rewrites the counter with a fresh
# full-window TTL, so steady traffic keeps a client's window open until it
# stays quiet for one whole window.
#
# Read-modify-write with no locking: concurrent requests from one client can
# read the same count and overshoot the limit by the degree of concurrency.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import structlog
from starlette.requests import Request

from bucketview.exceptions import StorageUnavailableError
from bucketview.schemas import RateLimitResult
from bucketview.services.listing import leading_int
from bucketview.storage.kv_store import KeyValueStore

logger = structlog.get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_address(request: Request, header: str = "CF-Connecting-IP") -> str:
    """Client key: proxy header first (first hop if comma-separated), then peer."""
    forwarded = request.headers.get(header, "") if header else ""
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


class RateLimiter:
    """Counts requests per client and decides whether to reject."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        limit: int = 30,
        window_seconds: int = 60,
        key_prefix: str = "ratelimit:",
        fail_open: bool = True,
    ) -> None:
        self._store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self._key_prefix = key_prefix
        self._fail_open = fail_open

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def check(self, client_id: str) -> RateLimitResult:
        """Count one request for client_id.

        Store failures either let the request through with an unknown
        remaining count (fail_open) or propagate as StorageUnavailableError.
        """
        try:
            return await self._check(client_id)
        except StorageUnavailableError as e:
            if not self._fail_open:
                raise
            logger.warning("rate_limit_store_unavailable", client=client_id, error=e.message)
            return RateLimitResult(limited=False, remaining=None)

    async def _check(self, client_id: str) -> RateLimitResult:
        key = f"{self._key_prefix}{client_id}"
        count = self._parse_count(await self._store.get(key))

        if count is None:
            await self._store.put(key, "1", self.window_seconds)
            return RateLimitResult(limited=False, remaining=self.limit - 1)

        if count >= self.limit:
            logger.info("rate_limited", client=client_id, count=count, limit=self.limit)
            return RateLimitResult(limited=True, remaining=0)

        await self._store.put(key, str(count + 1), self.window_seconds)
        return RateLimitResult(limited=False, remaining=self.limit - count - 1)

    @staticmethod
    def _parse_count(raw: str | None) -> int | None:
        """Leading integer of the stored counter ("29abc" -> 29).

        Absent values, values with no leading digits and negative counts
        start a fresh window.
        """
        count = leading_int(raw)
        if count is None or count < 0:
            return None
        return count
