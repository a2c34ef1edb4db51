# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn bucketview.main:create_app --factory --host 0.0.0.0 --port 8080

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from bucketview.config import Settings, get_settings
from bucketview.exceptions import register_exception_handlers
from bucketview.logging_config import configure_logging
from bucketview.middleware import RequestContextMiddleware
from bucketview.rate_limit import RateLimiter
from bucketview.routes import browse, health
from bucketview.routes import prometheus as prometheus_routes
from bucketview.services.metrics import BrowseMetrics
from bucketview.storage.kv_store import build_kv_store
from bucketview.storage.object_store import ObjectStore

logger = structlog.get_logger(__name__)


def build_rate_limiter(settings: Settings) -> RateLimiter | None:
    """RateLimiter over the configured counter store, or None when disabled."""
    store = build_kv_store(settings.rate_limit_store)
    if store is None:
        return None
    return RateLimiter(
        store,
        limit=settings.rate_limit_count,
        window_seconds=settings.rate_limit_window_seconds,
        key_prefix=settings.rate_limit_key_prefix,
        fail_open=settings.rate_limit_fail_open,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown: connect the bucket, open the counter store."""
    settings: Settings = app.state.settings

    store = ObjectStore(bucket_name=settings.bucket_name)
    await store.connect()
    limiter = build_rate_limiter(settings)

    app.state.object_store = store
    app.state.rate_limiter = limiter
    logger.info(
        "bucketview_started",
        bucket=settings.bucket_name or None,
        rate_limit=f"{settings.rate_limit_count}/{settings.rate_limit_window_seconds}s"
        if limiter
        else "disabled",
        page_size=settings.page_size,
    )

    yield

    if limiter is not None:
        await limiter.store.close()
    await store.disconnect()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory. Invoked by: uvicorn bucketview.main:create_app --factory"""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Bucket Browser",
        description="Paginated listing and downloads for a Cloud Storage bucket",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Lifespan fills in object_store and rate_limiter at startup.
    app.state.settings = settings
    app.state.metrics = BrowseMetrics()
    app.state.object_store = None
    app.state.rate_limiter = None

    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(browse.router, tags=["browse"])
    app.include_router(health.router, tags=["health"])
    app.include_router(prometheus_routes.router, tags=["prometheus"])

    return app
