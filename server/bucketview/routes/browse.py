# ─────────────────────────────────────────────────────────────────────────────
# GET / — bucket listing (?page=N) and object download (?file=KEY)
# ─────────────────────────────────────────────────────────────────────────────
# Only GET is routed; other methods get 405 from the router before any
# dependency runs. Dependency order matters: the bucket binding is checked
# before the rate limiter counts the request.
# ─────────────────────────────────────────────────────────────────────────────

from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response, StreamingResponse

from bucketview.config import Settings
from bucketview.dependencies import (
    enforce_rate_limit,
    get_metrics,
    get_object_store,
    get_settings_dep,
)
from bucketview.exceptions import (
    InvalidObjectKeyError,
    ObjectNotFoundError,
    StorageUnavailableError,
)
from bucketview.schemas import RateLimitResult
from bucketview.services.listing import paginate, parse_page
from bucketview.services.metrics import BrowseMetrics
from bucketview.services.rendering import render_listing
from bucketview.storage.object_store import ObjectStore

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_CONTENT_TYPE = "application/octet-stream"
LISTING_CACHE_CONTROL = "no-cache, no-store, must-revalidate"


def validate_object_key(key: str) -> str:
    """Reject parent-directory segments and absolute paths."""
    if ".." in key or key.startswith("/"):
        raise InvalidObjectKeyError(key)
    return key


def content_disposition(key: str) -> str:
    """attachment; filename="<key>", RFC 5987 filename* added for non-ASCII keys."""
    escaped = key.replace("\\", "\\\\").replace('"', '\\"')
    if escaped.isascii() and escaped.isprintable():
        return f'attachment; filename="{escaped}"'
    fallback = "".join(c if c.isascii() and c.isprintable() else "_" for c in escaped)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(key, safe='')}"


@router.get("/", response_class=HTMLResponse)
async def browse(
    file: str | None = Query(None, description="Object key to download"),
    page: str | None = Query(None, description="1-based listing page"),
    store: ObjectStore = Depends(get_object_store),
    rate: RateLimitResult | None = Depends(enforce_rate_limit),
    settings: Settings = Depends(get_settings_dep),
    metrics: BrowseMetrics = Depends(get_metrics),
) -> Response:
    """Download one object when ?file= is set, otherwise list the bucket."""
    if file:
        try:
            validate_object_key(file)
        except InvalidObjectKeyError:
            metrics.record_invalid_key()
            raise
        return await _serve_object(store, file, settings, metrics)
    return await _list_objects(store, page, settings, metrics)


async def _list_objects(
    store: ObjectStore, raw_page: str | None, settings: Settings, metrics: BrowseMetrics
) -> HTMLResponse:
    try:
        objects = await store.list_all()
    except StorageUnavailableError:
        metrics.record_storage_error()
        raise

    current = paginate(objects, parse_page(raw_page), settings.page_size)
    metrics.record_listing(current.total_items)
    logger.debug(
        "listing_rendered",
        page=current.page_number,
        total_pages=current.total_pages,
        total_items=current.total_items,
    )
    return HTMLResponse(
        content=render_listing(current, objects, title=settings.listing_title),
        headers={"Cache-Control": LISTING_CACHE_CONTROL},
    )


async def _serve_object(
    store: ObjectStore, key: str, settings: Settings, metrics: BrowseMetrics
) -> StreamingResponse:
    try:
        found = await store.get(key)
    except StorageUnavailableError:
        metrics.record_storage_error()
        raise

    if found is None:
        metrics.record_not_found()
        logger.info("object_not_found", key=key)
        raise ObjectNotFoundError(key)

    meta = found.meta
    metrics.record_download(meta.size)
    logger.info("object_served", key=key, size=meta.size, content_type=meta.content_type)
    return StreamingResponse(
        found.iter_bytes(settings.download_chunk_size),
        media_type=meta.content_type or DEFAULT_CONTENT_TYPE,
        headers={
            "Cache-Control": f"public, max-age={settings.download_cache_max_age}",
            "Content-Length": str(meta.size),
            "Content-Disposition": content_disposition(key),
        },
    )
