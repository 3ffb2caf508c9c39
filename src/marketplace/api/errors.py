"""Map domain error kinds to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.domain.errors import MarketplaceError

STATUS_BY_KIND: dict[str, int] = {
    "validation": 422,
    "authorization": 403,
    "not_found": 404,
    "invalid_state": 409,
    "busy": 503,
}


async def marketplace_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a :class:`MarketplaceError` as ``{"error": kind, "detail": message}``."""
    if not isinstance(exc, MarketplaceError):
        raise exc
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(exc.kind, 400),
        content={"error": exc.kind, "detail": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain error handler on *app*."""
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
