"""SQLite schema for negotiation persistence."""

from __future__ import annotations

import sqlite3


def init_negotiation_table(conn: sqlite3.Connection) -> None:
    """Create the negotiations table if it does not already exist.

    One row per negotiation holding the full snapshot: participants,
    status, seed offer, the JSON-encoded message ledger, and timestamps.
    ``seq`` preserves insertion order for recovery.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS negotiations (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            product_id TEXT NOT NULL,
            buyer_id TEXT NOT NULL,
            seller_id TEXT NOT NULL,
            status TEXT NOT NULL,
            initial_offer TEXT NOT NULL,
            messages_json TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_neg_buyer ON negotiations (buyer_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_neg_seller ON negotiations (seller_id)")

    conn.commit()
