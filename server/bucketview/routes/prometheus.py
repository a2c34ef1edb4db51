# ─────────────────────────────────────────────────────────────────────────────
# Prometheus Metrics Endpoint — text exposition format
# ─────────────────────────────────────────────────────────────────────────────
# GET /metrics/prometheus → text/plain Prometheus format
# Bridges BrowseMetrics → prometheus-client gauges.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from bucketview.dependencies import get_metrics
from bucketview.services.metrics import BrowseMetrics

router = APIRouter()

# ── Prometheus metrics (custom registry to avoid default process metrics) ─────

_registry = CollectorRegistry()

_requests_total = Gauge(
    "bucketview_requests_total",
    "Browse requests by outcome since process start",
    ["outcome"],
    registry=_registry,
)

_bytes_served = Gauge(
    "bucketview_bytes_served_total",
    "Object bytes announced in download responses",
    registry=_registry,
)

_listing_size = Gauge(
    "bucketview_listing_objects",
    "Objects in the most recent bucket listing",
    registry=_registry,
)

_uptime = Gauge(
    "bucketview_uptime_seconds",
    "Seconds since the metrics collector started",
    registry=_registry,
)

_OUTCOMES = {
    "listing": "listings_served",
    "download": "downloads_served",
    "not_found": "not_found",
    "invalid_key": "invalid_keys",
    "rate_limited": "rate_limited",
    "storage_error": "storage_errors",
}


def _sync_metrics(metrics: BrowseMetrics) -> None:
    """Sync BrowseMetrics data into Prometheus gauges."""
    data = metrics.to_dict()
    for outcome, field_name in _OUTCOMES.items():
        _requests_total.labels(outcome=outcome).set(data[field_name])
    _bytes_served.set(data["bytes_served"])
    _listing_size.set(data["last_listing_size"])
    _uptime.set(data["uptime_seconds"])


@router.get("/metrics/prometheus")
async def prometheus_metrics(
    metrics: BrowseMetrics = Depends(get_metrics),
) -> Response:
    """Prometheus text exposition format metrics endpoint."""
    _sync_metrics(metrics)
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
