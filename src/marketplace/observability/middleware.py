"""Per-request log context for the HTTP API.

Every response carries an ``X-Request-ID`` header (echoed from the client or
generated).  The request id and the calling user (``X-User-Id``) are bound
into structlog contextvars, so service-level log events emitted while the
request is handled can be correlated with it.  One ``http_request`` event is
logged per request, except for probe and scrape endpoints.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

QUIET_PATHS: frozenset[str] = frozenset({"/health", "/ready", "/metrics"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request id and caller into the log context and time the request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            service="marketplace",
            caller_id=request.headers.get("X-User-Id"),
        )

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        if request.url.path not in QUIET_PATHS:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response
