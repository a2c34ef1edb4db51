# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness, readiness, metrics
# ─────────────────────────────────────────────────────────────────────────────
#
#   /health        → Liveness probe. "Is the process alive?" Near-zero cost.
#   /health/ready  → Readiness probe. Bucket configured and client connected.
#                    Returns 503 if not ready.
#   /metrics       → Browse counters as JSON.
#
# None of these are rate-limited.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bucketview.dependencies import get_metrics, get_rate_limiter
from bucketview.rate_limit import RateLimiter
from bucketview.schemas import LivenessResponse, ReadinessResponse
from bucketview.services.metrics import BrowseMetrics

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe — is the process alive? No deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    request: Request,
    limiter: RateLimiter | None = Depends(get_rate_limiter),
) -> JSONResponse:
    """Readiness probe — can this instance serve the bucket?

    Does not call the bucket; reports whether the client was created.
    """
    store = getattr(request.app.state, "object_store", None)
    configured = store is not None and store.is_configured
    connected = configured and store.is_connected

    response = ReadinessResponse(
        status="ready" if connected else "not_ready",
        bucket_configured=configured,
        bucket_connected=connected,
        rate_limit_enabled=limiter is not None,
    )

    return JSONResponse(
        status_code=200 if connected else 503,
        content=response.model_dump(),
    )


@router.get("/metrics")
async def metrics_endpoint(
    metrics: BrowseMetrics = Depends(get_metrics),
) -> dict[str, Any]:
    """Listing/download counters."""
    return metrics.to_dict()
