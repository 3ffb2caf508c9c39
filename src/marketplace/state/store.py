"""SQLite-backed negotiation store for restart recovery.

Accepts a sqlite3.Connection, uses parameterized queries exclusively, and
commits synchronously after writes.
"""

from __future__ import annotations

import sqlite3
import threading

from marketplace.domain.models import Negotiation
from marketplace.resilience.retry import resilient_write
from marketplace.state.serializers import deserialize_messages, serialize_messages


class NegotiationStore:
    """Persist and retrieve negotiation snapshots in SQLite.

    Each row holds one negotiation's full state as of its last mutation.
    """

    def __init__(
        self, conn: sqlite3.Connection, write_lock: threading.Lock | None = None
    ) -> None:
        """Initialize with an open database connection.

        Args:
            conn: An open sqlite3.Connection whose database already has the
                  ``negotiations`` table (see ``init_negotiation_table``).
            write_lock: Lock held around every statement on *conn*.  Pass the
                  same lock to every other writer sharing the connection so a
                  commit or rollback never takes in their pending rows.
        """
        self._conn = conn
        self._lock = write_lock if write_lock is not None else threading.Lock()

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    @resilient_write("negotiation_save")
    def save(self, negotiation: Negotiation) -> None:
        """Upsert a full negotiation snapshot.

        ``seq`` and ``created_at`` of an existing row are left untouched so
        recovery order follows first insertion.
        """
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO negotiations (
                        id, product_id, buyer_id, seller_id, status,
                        initial_offer, messages_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        status = excluded.status,
                        messages_json = excluded.messages_json,
                        updated_at = excluded.updated_at
                    """,
                    (
                        negotiation.id,
                        negotiation.product_id,
                        negotiation.buyer_id,
                        negotiation.seller_id,
                        negotiation.status.value,
                        str(negotiation.initial_offer),
                        serialize_messages(negotiation.messages),
                        negotiation.created_at.isoformat(),
                        negotiation.updated_at.isoformat(),
                    ),
                )
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def load_all(self) -> list[Negotiation]:
        """Load every stored negotiation in first-insertion order."""
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT id, product_id, buyer_id, seller_id, status,
                       initial_offer, messages_json, created_at, updated_at
                FROM negotiations ORDER BY seq
                """
            )
            rows = cursor.fetchall()

        return [
            Negotiation.model_validate(
                {
                    "id": row[0],
                    "product_id": row[1],
                    "buyer_id": row[2],
                    "seller_id": row[3],
                    "status": row[4],
                    "initial_offer": row[5],
                    "messages": deserialize_messages(row[6]),
                    "created_at": row[7],
                    "updated_at": row[8],
                }
            )
            for row in rows
        ]

    def count(self) -> int:
        """Return the number of stored negotiations."""
        with self._lock:
            return int(self._conn.execute("SELECT COUNT(*) FROM negotiations").fetchone()[0])
