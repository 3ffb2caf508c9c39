"""Prometheus metrics instrumentation for the marketplace service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus business metrics.
- ``ACTIVE_NEGOTIATIONS``: Gauge of negotiations currently in ``active`` status.
- ``OFFERS_MADE``: Counter of ledger messages carrying an offer amount.
- ``DEALS_COMPLETED``: Counter of negotiations reaching ``completed``.
- ``OPERATIONS_REFUSED``: Counter of refused caller operations by action and
  error kind.

Business metrics are updated at state transitions (not by polling storage).
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

ACTIVE_NEGOTIATIONS: Gauge = Gauge(
    "marketplace_negotiations_active",
    "Number of negotiations currently in active status",
)

OFFERS_MADE: Counter = Counter(
    "marketplace_offers_made_total",
    "Total number of messages carrying an offer amount, including seed offers",
)

DEALS_COMPLETED: Counter = Counter(
    "marketplace_deals_completed_total",
    "Total number of negotiations reaching completed status",
)

OPERATIONS_REFUSED: Counter = Counter(
    "marketplace_operations_refused_total",
    "Total number of caller operations refused, by action and error kind",
    ["action", "kind"],
)


def setup_metrics(app: FastAPI) -> None:
    """Add HTTP request metrics to *app* and serve them with the business
    metrics at ``/metrics``.  Probe and scrape routes are not instrumented.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
