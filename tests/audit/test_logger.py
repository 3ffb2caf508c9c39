"""Tests for the AuditLogger convenience API."""

from __future__ import annotations

import sqlite3
import threading
from decimal import Decimal

import pytest

from marketplace.audit.logger import AuditLogger
from marketplace.audit.store import init_audit_table, open_db, query_audit_trail


@pytest.fixture
def conn() -> sqlite3.Connection:
    connection = open_db(":memory:")
    init_audit_table(connection)
    return connection


@pytest.fixture
def audit(conn: sqlite3.Connection) -> AuditLogger:
    return AuditLogger(conn)


class TestAuditLogger:
    def test_negotiation_started(self, audit: AuditLogger, conn: sqlite3.Connection) -> None:
        audit.log_negotiation_started("n1", "p1", "b1", "s1", Decimal("650"))

        (row,) = query_audit_trail(conn)
        assert row["event_type"] == "negotiation_started"
        assert row["product_id"] == "p1"
        assert row["actor_id"] == "b1"
        assert row["actor_role"] == "buyer"
        assert row["negotiation_status"] == "active"
        assert row["offer_amount"] == "650"
        assert row["metadata"] == {"seller_id": "s1"}

    def test_message_sent_without_offer(self, audit: AuditLogger, conn: sqlite3.Connection) -> None:
        audit.log_message_sent("n1", "s1", "seller", "Is it still there?", None, "active")

        (row,) = query_audit_trail(conn)
        assert row["event_type"] == "message_sent"
        assert row["content"] == "Is it still there?"
        assert row["offer_amount"] is None

    def test_state_transition(self, audit: AuditLogger, conn: sqlite3.Connection) -> None:
        audit.log_state_transition("n1", "s1", "active", "accepted", "accept", Decimal("680"))

        (row,) = query_audit_trail(conn)
        assert row["negotiation_status"] == "accepted"
        assert row["offer_amount"] == "680"
        assert row["metadata"] == {
            "from_status": "active",
            "to_status": "accepted",
            "event": "accept",
        }

    def test_contact_disclosed(self, audit: AuditLogger, conn: sqlite3.Connection) -> None:
        audit.log_contact_disclosed("n1", "b1", "s1")

        (row,) = query_audit_trail(conn)
        assert row["event_type"] == "contact_disclosed"
        assert row["metadata"] == {"disclosed_user_id": "s1"}

    def test_error_with_and_without_context(
        self, audit: AuditLogger, conn: sqlite3.Connection
    ) -> None:
        audit.log_error(None, "s1", "authorization", "may not start", context="start a negotiation")
        audit.log_error("n1", "b1", "invalid_state", "Cannot accept")

        rows = query_audit_trail(conn, event_type="error")
        assert rows[0]["metadata"] == {"error_kind": "invalid_state", "error_message": "Cannot accept"}
        assert rows[1]["negotiation_id"] is None
        assert rows[1]["metadata"]["context"] == "start a negotiation"

    def test_returns_row_ids(self, audit: AuditLogger) -> None:
        first = audit.log_contact_disclosed("n1", "b1", "s1")
        second = audit.log_contact_disclosed("n1", "s1", "b1")
        assert second == first + 1

    def test_concurrent_inserts(self, audit: AuditLogger, conn: sqlite3.Connection) -> None:
        def worker(i: int) -> None:
            for _ in range(10):
                audit.log_message_sent(f"n{i}", "b1", "buyer", "hi", None, "active")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(query_audit_trail(conn, limit=100)) == 40
