# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Models — stored objects, pages, rate-limit results, probes
# ─────────────────────────────────────────────────────────────────────────────


from pydantic import BaseModel, Field


class StoredObject(BaseModel):
    """One object in the bucket. Read-only to this service."""

    key: str = Field(..., min_length=1, description="Path-like object name")
    size: int = Field(..., ge=0, description="Size in bytes")
    content_type: str | None = Field(None, description="Stored MIME type, if any")


class Page(BaseModel):
    """One window of the sorted listing. Recomputed on every request."""

    items: list[StoredObject]
    page_number: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    total_items: int = Field(..., ge=0)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0

    @property
    def display_total(self) -> int:
        """Total shown in the pagination bar ("1 / 1" for an empty bucket)."""
        return self.total_pages or 1

    @property
    def previous_page(self) -> int:
        return self.page_number - 1 if self.page_number > 1 else 1

    @property
    def next_page(self) -> int:
        return self.page_number + 1 if self.page_number < self.display_total else self.display_total


class RateLimitResult(BaseModel):
    """Outcome of a per-client counter check.

    remaining is None when the counter store failed and the check failed open.
    """

    limited: bool
    remaining: int | None = Field(None, ge=0)


class LivenessResponse(BaseModel):
    """Liveness probe — minimal, near-zero cost."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe — can the instance serve the bucket?"""

    status: str  # "ready" or "not_ready"
    bucket_configured: bool
    bucket_connected: bool
    rate_limit_enabled: bool
