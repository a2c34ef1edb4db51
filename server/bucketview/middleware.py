# ─────────────────────────────────────────────────────────────────────────────
# Request Middleware — request ID, timing, structured logging
# ─────────────────────────────────────────────────────────────────────────────


import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds request ID, logs timing, attaches context for structured logging.

    Also reports the client's remaining rate-limit budget when the request
    went through the rate-limit check. Skips logging for /health probes.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()

        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = (time.perf_counter() - start) * 1000

        if not request.url.path.startswith("/health"):
            logger.info(
                "request_completed",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path),
                status=response.status_code,
                duration_ms=round(duration_ms, 1),
            )

        remaining = getattr(request.state, "rate_limit_remaining", None)
        if remaining is not None and "X-RateLimit-Remaining" not in response.headers:
            response.headers["X-RateLimit-Remaining"] = str(remaining)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(round(duration_ms, 1))
        return response
