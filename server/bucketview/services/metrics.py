# ─────────────────────────────────────────────────────────────────────────────
# Browse Metrics — thread-safe request outcome counters
# ─────────────────────────────────────────────────────────────────────────────
# Exposed as JSON via GET /metrics and bridged to Prometheus by
# routes/prometheus.py. Download bodies stream from a thread pool, so all
# mutations take the lock.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class BrowseMetrics:
    """Per-process counters for listings, downloads and rejections."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    listings_served: int = 0
    downloads_served: int = 0
    bytes_served: int = 0
    not_found: int = 0
    invalid_keys: int = 0
    rate_limited: int = 0
    storage_errors: int = 0

    # Bounded -- only keeps last 1000 listing sizes, oldest auto-evicted
    _listing_sizes: deque[int] = field(default_factory=lambda: deque(maxlen=1000), repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def record_listing(self, total_items: int) -> None:
        with self._lock:
            self.listings_served += 1
            self._listing_sizes.append(total_items)

    def record_download(self, size: int) -> None:
        with self._lock:
            self.downloads_served += 1
            self.bytes_served += size

    def record_not_found(self) -> None:
        with self._lock:
            self.not_found += 1

    def record_invalid_key(self) -> None:
        with self._lock:
            self.invalid_keys += 1

    def record_rate_limited(self) -> None:
        with self._lock:
            self.rate_limited += 1

    def record_storage_error(self) -> None:
        with self._lock:
            self.storage_errors += 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            sizes = self._listing_sizes
            return {
                "listings_served": self.listings_served,
                "downloads_served": self.downloads_served,
                "bytes_served": self.bytes_served,
                "not_found": self.not_found,
                "invalid_keys": self.invalid_keys,
                "rate_limited": self.rate_limited,
                "storage_errors": self.storage_errors,
                "last_listing_size": sizes[-1] if sizes else 0,
                "max_listing_size": max(sizes) if sizes else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }
