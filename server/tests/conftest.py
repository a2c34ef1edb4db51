# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# No network: the GCS bucket is an in-memory fake, the counter store is the
# in-process MemoryKeyValueStore driven by a hand-advanced clock.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient

from bucketview.config import Settings
from bucketview.main import create_app
from bucketview.rate_limit import RateLimiter
from bucketview.storage.kv_store import MemoryKeyValueStore
from bucketview.storage.object_store import ObjectStore


class FakeBlob:
    """In-memory fake for google.cloud.storage.Blob."""

    def __init__(self, name: str, data: bytes, content_type: str | None = None) -> None:
        self.name = name
        self._data = data
        self.size = len(data)
        self.content_type = content_type

    def open(self, mode: str = "rb") -> io.BytesIO:
        assert mode == "rb"
        return io.BytesIO(self._data)


class FakeBucket:
    """In-memory fake for google.cloud.storage.Bucket (read side only)."""

    def __init__(self) -> None:
        self._blobs: dict[str, FakeBlob] = {}
        self.list_calls = 0
        self.get_calls = 0

    def add(self, name: str, data: bytes = b"", content_type: str | None = None) -> FakeBlob:
        blob = FakeBlob(name, data, content_type)
        self._blobs[name] = blob
        return blob

    def list_blobs(self) -> list[FakeBlob]:
        self.list_calls += 1
        # Reverse insertion order so callers must sort
        return list(reversed(self._blobs.values()))

    def get_blob(self, name: str) -> FakeBlob | None:
        self.get_calls += 1
        return self._blobs.get(name)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests: fake bucket, in-memory counters."""
    return Settings(
        bucket_name="test-bucket",
        rate_limit_store="memory",
        rate_limit_count=30,
        rate_limit_window_seconds=60,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def object_store(fake_bucket: FakeBucket) -> ObjectStore:
    """ObjectStore wired to the fake bucket (no Cloud Storage client)."""
    store = ObjectStore(bucket_name="test-bucket")
    store._bucket = fake_bucket
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_store(clock: FakeClock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(timer=clock)


@pytest.fixture
def rate_limiter(kv_store: MemoryKeyValueStore, test_settings: Settings) -> RateLimiter:
    return RateLimiter(
        kv_store,
        limit=test_settings.rate_limit_count,
        window_seconds=test_settings.rate_limit_window_seconds,
    )


@pytest.fixture
def client(
    test_settings: Settings, object_store: ObjectStore, rate_limiter: RateLimiter
) -> TestClient:
    """FastAPI TestClient with the fake bucket and in-memory rate limiter.

    The lifespan does not run (no `with` block), so app.state is filled in
    directly. No GCS client, no Redis.
    """
    app = create_app(test_settings)
    app.state.object_store = object_store
    app.state.rate_limiter = rate_limiter
    return TestClient(app)
