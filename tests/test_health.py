"""Tests for the /health and /ready probes."""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.health import readiness_checks, register_health_routes


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    connection = sqlite3.connect(":memory:", check_same_thread=False)
    yield connection
    connection.close()


def _client(services: dict[str, Any]) -> TestClient:
    app = FastAPI()
    app.state.services = services
    register_health_routes(app)
    return TestClient(app)


def test_health_is_always_200() -> None:
    response = _client({}).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_ready_when_database_and_service_present(conn: sqlite3.Connection) -> None:
    response = _client({"db_conn": conn, "negotiation_service": object()}).get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"database": "ok", "negotiation_service": "ok"},
    }


@pytest.mark.parametrize("db_conn", [None, "closed"])
def test_not_ready_without_usable_database(db_conn: str | None) -> None:
    if db_conn == "closed":
        closed = sqlite3.connect(":memory:", check_same_thread=False)
        closed.close()
        services: dict[str, Any] = {"db_conn": closed, "negotiation_service": object()}
    else:
        services = {"db_conn": None, "negotiation_service": object()}

    response = _client(services).get("/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "not_ready"
    assert body["checks"] == {"database": "fail", "negotiation_service": "ok"}


def test_not_ready_without_service(conn: sqlite3.Connection) -> None:
    response = _client({"db_conn": conn}).get("/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["negotiation_service"] == "fail"


def test_readiness_checks_labels_each_check(conn: sqlite3.Connection) -> None:
    checks = asyncio.run(readiness_checks({"db_conn": conn}))

    assert checks == {"database": "ok", "negotiation_service": "fail"}
