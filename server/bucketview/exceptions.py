# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class BucketViewError(Exception):
    """Base exception for all bucket browser errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationMissingError(BucketViewError):
    """Raised when a required storage binding is not configured."""

    def __init__(self, setting: str):
        super().__init__(f"Storage binding '{setting}' is not configured", status_code=500)


class InvalidObjectKeyError(BucketViewError):
    """Raised for file keys with parent-directory segments or a leading slash."""

    def __init__(self, key: str):
        self.key = key
        super().__init__("Invalid file key", status_code=400)


class ObjectNotFoundError(BucketViewError):
    """Raised when the requested key does not exist in the bucket."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"File not found: {key}", status_code=404)


class StorageUnavailableError(BucketViewError):
    """Raised when the object store or the counter store cannot be reached."""

    def __init__(self, store: str, reason: str):
        self.store = store
        super().__init__(f"{store} unavailable: {reason}", status_code=500)


class RateLimitedError(BucketViewError):
    """Raised when a client exhausted its request budget for the window.

    The handler turns retry_after_seconds and limit into Retry-After and
    X-RateLimit-* headers on the 429 response.
    """

    def __init__(self, limit: int, retry_after_seconds: int):
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many requests. Retry in {retry_after_seconds} seconds.",
            status_code=429,
        )


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise BucketViewError subclasses; these handlers catch them
    and return structured JSON -- no inline try/except in endpoints.
    """

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
        """429 with Retry-After and limit headers."""
        logger.warning(
            "rate_limited_response",
            path=request.url.path,
            limit=exc.limit,
            retry_after=exc.retry_after_seconds,
        )
        return JSONResponse(
            status_code=429,
            content={"error": exc.message, "type": "RateLimitedError"},
            headers={
                "Retry-After": str(exc.retry_after_seconds),
                "X-RateLimit-Limit": str(exc.limit),
                "X-RateLimit-Remaining": "0",
            },
        )

    @app.exception_handler(BucketViewError)
    async def bucketview_error_handler(request: Request, exc: BucketViewError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "bucketview_error", error=exc.message, error_type=type(exc).__name__, exc_info=exc
            )
        else:
            logger.info("request_rejected", error=exc.message, error_type=type(exc).__name__)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "type": type(exc).__name__},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Routing errors (405 wrong method, 404 unknown path) in the same body shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "type": "HTTPException"},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "UnhandledError"},
        )
