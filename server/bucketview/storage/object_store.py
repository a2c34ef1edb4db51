# Read-only access to the Cloud Storage bucket being browsed.
# Storage I/O wrapped in executor to avoid blocking event loop.
# SDK errors are converted to StorageUnavailableError at this seam.

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import structlog
from google.api_core.exceptions import GoogleAPIError

from bucketview.exceptions import StorageUnavailableError
from bucketview.schemas import StoredObject
from bucketview.services.listing import sort_objects

logger = structlog.get_logger(__name__)


def _to_stored_object(blob: Any) -> StoredObject:
    return StoredObject(key=blob.name, size=blob.size or 0, content_type=blob.content_type)


@dataclass
class StoredBlob:
    """A located object: its metadata plus a handle for streaming the bytes."""

    meta: StoredObject
    _blob: Any

    def iter_bytes(self, chunk_size: int) -> Iterator[bytes]:
        """Yield the object's bytes. Blocking; Starlette iterates it in a thread."""
        with self._blob.open("rb") as fh:
            while chunk := fh.read(chunk_size):
                yield chunk


class ObjectStore:
    """Cloud Storage bucket wrapper: list everything, fetch one."""

    def __init__(self, bucket_name: str = "") -> None:
        self._bucket_name = bucket_name
        self._client: Any = None
        self._bucket: Any = None

    async def connect(self) -> None:
        """Initialize Cloud Storage client. Async wrapper around sync SDK."""
        if self._bucket_name:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._connect_sync)
        else:
            logger.warning("bucket_not_configured", reason="no BUCKET_NAME set")

    def _connect_sync(self) -> None:
        """Synchronous Cloud Storage connection."""
        try:
            from google.cloud import storage

            self._client = storage.Client()
            self._bucket = self._client.bucket(self._bucket_name)
            logger.info("bucket_connected", bucket=f"gs://{self._bucket_name}")
        except Exception as e:
            logger.warning("bucket_unavailable", bucket=self._bucket_name, error=str(e))

    async def disconnect(self) -> None:
        """Close Cloud Storage client."""
        if self._client:
            self._client.close()

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def is_configured(self) -> bool:
        return bool(self._bucket_name)

    @property
    def is_connected(self) -> bool:
        return self._bucket is not None

    def _require_bucket(self) -> Any:
        if self._bucket is None:
            raise StorageUnavailableError("Object store", "bucket client not connected")
        return self._bucket

    # ── List ─────────────────────────────────────────────────────────────

    async def list_all(self) -> list[StoredObject]:
        """Every object in the bucket, sorted by key.

        One listing call; the SDK follows its own page tokens. Large buckets
        are read in full on every request.
        """
        bucket = self._require_bucket()
        loop = asyncio.get_running_loop()
        objects = await loop.run_in_executor(None, self._list_sync, bucket)
        return sort_objects(objects)

    def _list_sync(self, bucket: Any) -> list[StoredObject]:
        """Synchronous blob listing. Runs in executor."""
        try:
            return [_to_stored_object(blob) for blob in bucket.list_blobs()]
        except GoogleAPIError as e:
            logger.error("bucket_list_failed", bucket=self._bucket_name, error=str(e))
            raise StorageUnavailableError("Object store", str(e)) from e

    # ── Get ──────────────────────────────────────────────────────────────

    async def get(self, key: str) -> StoredBlob | None:
        """Look up one object's metadata. None when the key does not exist."""
        bucket = self._require_bucket()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get_sync, bucket, key)

    def _get_sync(self, bucket: Any, key: str) -> StoredBlob | None:
        """Synchronous metadata fetch. Runs in executor."""
        try:
            blob = bucket.get_blob(key)
        except GoogleAPIError as e:
            logger.error("bucket_get_failed", key=key, error=str(e))
            raise StorageUnavailableError("Object store", str(e)) from e
        if blob is None:
            return None
        return StoredBlob(meta=_to_stored_object(blob), _blob=blob)
