# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Depends, Request

from bucketview.config import Settings
from bucketview.exceptions import ConfigurationMissingError, RateLimitedError
from bucketview.rate_limit import RateLimiter, client_address
from bucketview.schemas import RateLimitResult
from bucketview.services.metrics import BrowseMetrics
from bucketview.storage.object_store import ObjectStore


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_metrics(request: Request) -> BrowseMetrics:
    """Inject BrowseMetrics into endpoints via Depends()."""
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_rate_limiter(request: Request) -> RateLimiter | None:
    """Inject the RateLimiter, or None when rate limiting is disabled."""
    return getattr(request.app.state, "rate_limiter", None)


def get_object_store(request: Request) -> ObjectStore:
    """Inject ObjectStore; a missing bucket binding is a 500 for every request."""
    store: ObjectStore | None = getattr(request.app.state, "object_store", None)
    if store is None or not store.is_configured:
        raise ConfigurationMissingError("BUCKET_NAME")
    return store


async def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter | None = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
    metrics: BrowseMetrics = Depends(get_metrics),
) -> RateLimitResult | None:
    """Count the request against the client's budget; raise 429 when exhausted.

    Leaves the remaining count on request.state for RequestContextMiddleware
    to report as X-RateLimit-Remaining.
    """
    if limiter is None:
        return None

    result = await limiter.check(client_address(request, settings.client_ip_header))
    if result.limited:
        metrics.record_rate_limited()
        raise RateLimitedError(limiter.limit, limiter.window_seconds)

    request.state.rate_limit_remaining = result.remaining
    return result
