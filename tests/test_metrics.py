"""Tests for Prometheus metrics endpoint and custom business metrics."""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from marketplace.domain.errors import AuthorizationError
from marketplace.observability.metrics import ACTIVE_NEGOTIATIONS, setup_metrics
from marketplace.service import NegotiationService


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Reset custom metric values between tests.

    Prometheus collectors are registered globally, so gauges are reset and
    counters are compared by relative increments.
    """
    ACTIVE_NEGOTIATIONS.set(0)
    yield


def _sample(name: str) -> float:
    value = REGISTRY.get_sample_value(name)
    return 0.0 if value is None else value


@pytest.fixture()
def metrics_app() -> FastAPI:
    """Create a minimal FastAPI app with Prometheus instrumentation."""
    app = FastAPI()

    @app.get("/hello")
    async def hello():
        return {"msg": "hello"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    setup_metrics(app)
    return app


def test_metrics_endpoint_returns_prometheus_format(metrics_app: FastAPI) -> None:
    client = TestClient(metrics_app)
    client.get("/hello")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    body = resp.text
    assert "marketplace_negotiations_active" in body
    assert "marketplace_offers_made_total" in body
    assert "marketplace_deals_completed_total" in body
    assert "http_request" in body


def test_health_is_not_instrumented(metrics_app: FastAPI) -> None:
    client = TestClient(metrics_app)
    client.get("/health")
    body = client.get("/metrics").text
    assert 'handler="/health"' not in body


class TestBusinessMetrics:
    """Metrics move with negotiation state transitions."""

    def test_start_and_offers(self, service: NegotiationService) -> None:
        offers_before = _sample("marketplace_offers_made_total")

        nid = service.start("b1", "p1", "s1", Decimal("650"))
        service.send_message(nid, "s1", "counter", Decimal("680"))
        service.send_message(nid, "b1", "no offer here")

        assert _sample("marketplace_negotiations_active") == 1
        assert _sample("marketplace_offers_made_total") - offers_before == 2

    def test_completion(self, service: NegotiationService) -> None:
        deals_before = _sample("marketplace_deals_completed_total")

        nid = service.start("b1", "p1", "s1", Decimal("650"))
        service.accept_offer(nid, "s1")
        assert _sample("marketplace_negotiations_active") == 0
        service.complete_purchase(nid, "b1")

        assert _sample("marketplace_deals_completed_total") - deals_before == 1

    def test_rejection_leaves_active(self, service: NegotiationService) -> None:
        nid = service.start("b1", "p1", "s1", Decimal("650"))
        service.reject_offer(nid, "b1")
        assert _sample("marketplace_negotiations_active") == 0

    def test_refused_operations_do_not_count(self, service: NegotiationService) -> None:
        offers_before = _sample("marketplace_offers_made_total")
        with pytest.raises(AuthorizationError):
            service.start("s1", "p1", "s1", Decimal("650"))
        assert _sample("marketplace_offers_made_total") == offers_before
        assert _sample("marketplace_negotiations_active") == 0

    def test_refusals_are_counted_by_action_and_kind(
        self, service: NegotiationService
    ) -> None:
        labels = {"action": "accept", "kind": "authorization"}
        before = REGISTRY.get_sample_value("marketplace_operations_refused_total", labels) or 0.0

        nid = service.start("b1", "p1", "s1", Decimal("650"))
        with pytest.raises(AuthorizationError):
            service.accept_offer(nid, "b1")

        after = REGISTRY.get_sample_value("marketplace_operations_refused_total", labels)
        assert after == before + 1
