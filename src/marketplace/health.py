"""Liveness and readiness probes.

``/health`` answers as long as the process is serving requests.  ``/ready``
additionally requires a working database connection and a constructed
negotiation service, and reports each check by name so a failing probe
says what is missing.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


async def _database_ok(conn: sqlite3.Connection | None) -> bool:
    if conn is None:
        return False
    try:
        await asyncio.to_thread(conn.execute, "SELECT 1")
    except sqlite3.Error:
        return False
    return True


async def readiness_checks(services: dict[str, Any]) -> dict[str, str]:
    """Run every readiness check against *services* and label each ok/fail."""
    results = {
        "database": await _database_ok(services.get("db_conn")),
        "negotiation_service": services.get("negotiation_service") is not None,
    }
    return {name: "ok" if passed else "fail" for name, passed in results.items()}


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*."""

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        checks = await readiness_checks(request.app.state.services)
        if all(result == "ok" for result in checks.values()):
            return JSONResponse(content={"status": "ready", "checks": checks})
        return JSONResponse(
            content={"status": "not_ready", "checks": checks}, status_code=503
        )
