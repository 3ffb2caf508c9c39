"""Process entry point: logging, storage, collaborators, and the HTTP app.

``main()`` reads settings, turns on Sentry when a DSN is set, configures
structlog, opens the SQLite database shared by the negotiation store and the
audit trail, restores persisted negotiations, and serves the API with uvicorn.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from marketplace.api import register_error_handlers, router
from marketplace.audit.logger import AuditLogger
from marketplace.audit.store import close_audit_db, init_audit_table, open_db
from marketplace.collaborators.seed import build_collaborators, load_seed
from marketplace.config import Settings, get_settings, validate_startup
from marketplace.health import register_health_routes
from marketplace.observability.metrics import setup_metrics
from marketplace.observability.middleware import RequestIdMiddleware
from marketplace.observability.sentry import get_sentry_processor, init_sentry
from marketplace.service import NegotiationService
from marketplace.state.schema import init_negotiation_table
from marketplace.state.store import NegotiationStore

logger = structlog.get_logger()


def configure_logging(production: bool = False, sentry: bool = False) -> None:
    """Install the structlog pipeline.

    JSON lines at INFO in production, the colored console renderer at DEBUG
    otherwise.  With *sentry* set, ERROR events are also sent to Sentry.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if sentry:
        shared_processors.append(get_sentry_processor())

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="marketplace")


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Open storage, load the seed collaborators, and rebuild the service.

    Persisted negotiations are restored into the directory before the
    service is returned, so reads after a restart see the same state.
    The returned dict is what request handlers find on
    ``app.state.services``.
    """
    if settings is None:
        settings = get_settings()

    db_path = settings.database_path
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = open_db(db_path)
    init_audit_table(conn)
    init_negotiation_table(conn)

    # One writer at a time on the shared connection.
    write_lock = threading.Lock()
    store = NegotiationStore(conn, write_lock=write_lock)
    audit_logger = AuditLogger(conn, write_lock=write_lock)
    identity, products = build_collaborators(load_seed(settings.seed_path))

    service = NegotiationService(
        identity,
        products,
        store=store,
        audit_logger=audit_logger,
        lock_timeout=settings.lock_timeout_seconds,
    )
    service.restore(store.load_all())

    logger.info(
        "Services initialized",
        database=str(db_path),
        users=len(identity),
        products=len(products),
        negotiations=len(service.directory),
    )
    return {
        "db_conn": conn,
        "negotiation_store": store,
        "audit_logger": audit_logger,
        "identity_provider": identity,
        "product_directory": products,
        "negotiation_service": service,
        "_settings": settings,
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Close the shared database connection when the server stops."""
    logger.info("HTTP server starting")
    yield
    conn = app.state.services.get("db_conn")
    if conn is not None:
        close_audit_db(conn)
        logger.info("Database connection closed")


def create_app(services: dict[str, Any]) -> FastAPI:
    """Wire *services* into a FastAPI app with routes, probes, and metrics."""
    fastapi_app = FastAPI(title="Marketplace Negotiations", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()
    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.include_router(router)
    register_error_handlers(fastapi_app)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


def main() -> None:
    """Main entry point: configure, initialize, and serve over HTTP."""
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn.get_secret_value(),
        environment="production" if settings.production else "development",
    )
    configure_logging(production=settings.production, sentry=sentry_enabled)
    logger.info("Application starting", sentry=sentry_enabled)

    validate_startup(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    uvicorn.run(fastapi_app, host="0.0.0.0", port=settings.http_port, log_level="info")


if __name__ == "__main__":
    main()
