"""Shared pytest fixtures for the marketplace negotiation test suite."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from marketplace.audit.logger import AuditLogger
from marketplace.audit.store import init_audit_table, open_db
from marketplace.collaborators.memory import InMemoryIdentityProvider, InMemoryProductDirectory
from marketplace.domain.models import Product, UserProfile
from marketplace.domain.types import ProductStatus, UserRole
from marketplace.service import NegotiationService
from marketplace.state.schema import init_negotiation_table
from marketplace.state.store import NegotiationStore

EPOCH = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class StepClock:
    """Deterministic clock that advances one second per reading."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@pytest.fixture
def clock() -> StepClock:
    """A clock that starts at a fixed instant and ticks once per call."""
    return StepClock()


@pytest.fixture
def seller() -> UserProfile:
    return UserProfile(id="s1", name="Sam Seller", role=UserRole.SELLER, phone_number="+1234567890")


@pytest.fixture
def buyer() -> UserProfile:
    return UserProfile(id="b1", name="Bea Buyer", role=UserRole.BUYER, phone_number="+1987654321")


@pytest.fixture
def identity(seller: UserProfile, buyer: UserProfile) -> InMemoryIdentityProvider:
    """Identity provider with one seller, two buyers, and a technician."""
    return InMemoryIdentityProvider(
        [
            seller,
            buyer,
            UserProfile(id="b2", role=UserRole.BUYER, phone_number="+1000000002"),
            UserProfile(id="s2", role=UserRole.SELLER, phone_number="+1000000003"),
            UserProfile(id="t1", role=UserRole.TECHNICIAN, phone_number="+1555123456"),
        ]
    )


@pytest.fixture
def products() -> InMemoryProductDirectory:
    """Product directory with a verified listing and a pending one."""
    return InMemoryProductDirectory(
        [
            Product(
                id="p1",
                name="iPhone 12 Pro",
                seller_id="s1",
                seller_price=Decimal("700"),
                seller_phone="+1234567890",
                status=ProductStatus.VERIFIED,
            ),
            Product(
                id="p2",
                name="MacBook Air M1",
                seller_id="s1",
                seller_price=Decimal("850"),
                status=ProductStatus.PENDING,
            ),
        ]
    )


@pytest.fixture
def service(
    identity: InMemoryIdentityProvider,
    products: InMemoryProductDirectory,
    clock: StepClock,
) -> NegotiationService:
    """Negotiation service with no persistence or audit trail."""
    return NegotiationService(identity, products, clock=clock, lock_timeout=1.0)


@pytest.fixture
def db_conn() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite connection with both tables created."""
    conn = open_db(":memory:")
    init_audit_table(conn)
    init_negotiation_table(conn)
    yield conn
    conn.close()


@pytest.fixture
def persistent_service(
    identity: InMemoryIdentityProvider,
    products: InMemoryProductDirectory,
    clock: StepClock,
    db_conn: sqlite3.Connection,
) -> NegotiationService:
    """Negotiation service that saves snapshots and writes the audit trail."""
    write_lock = threading.Lock()
    return NegotiationService(
        identity,
        products,
        store=NegotiationStore(db_conn, write_lock=write_lock),
        audit_logger=AuditLogger(db_conn, write_lock=write_lock),
        clock=clock,
        lock_timeout=1.0,
    )
