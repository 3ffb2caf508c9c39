"""SQLite-backed audit trail store with WAL mode and indexed queries.

Uses parameterized queries exclusively (never string concatenation).
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from marketplace.audit.models import AuditEntry


def open_db(db_path: Path | str) -> sqlite3.Connection:
    """Open a SQLite connection usable from worker threads, with WAL enabled.

    Args:
        db_path: Path to the database file, or ``":memory:"``.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_audit_table(conn: sqlite3.Connection) -> None:
    """Create the audit_log table and its indexes if they do not exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            event_type TEXT NOT NULL,
            negotiation_id TEXT,
            product_id TEXT,
            actor_id TEXT,
            actor_role TEXT,
            negotiation_status TEXT,
            offer_amount TEXT,
            content TEXT,
            metadata TEXT
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_audit_negotiation ON audit_log (negotiation_id)"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_actor ON audit_log (actor_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log (timestamp)")

    conn.commit()


def init_audit_db(db_path: Path | str) -> sqlite3.Connection:
    """Open the audit database and make sure its schema exists.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with WAL mode enabled.
    """
    conn = open_db(db_path)
    init_audit_table(conn)
    return conn


def insert_audit_entry(conn: sqlite3.Connection, entry: AuditEntry) -> int:
    """Insert an audit entry and return its row id.

    Serializes the metadata dict to a JSON string if present.
    """
    metadata_json: str | None = None
    if entry.metadata is not None:
        metadata_json = json.dumps(entry.metadata)

    timestamp = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    cursor = conn.execute(
        """
        INSERT INTO audit_log (
            timestamp, event_type, negotiation_id, product_id, actor_id,
            actor_role, negotiation_status, offer_amount, content, metadata
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            timestamp,
            entry.event_type.value,
            entry.negotiation_id,
            entry.product_id,
            entry.actor_id,
            entry.actor_role,
            entry.negotiation_status,
            entry.offer_amount,
            entry.content,
            metadata_json,
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def query_audit_trail(
    conn: sqlite3.Connection,
    *,
    negotiation_id: str | None = None,
    product_id: str | None = None,
    actor_id: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    event_type: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Query the audit trail with flexible filtering.

    All filters are optional.  Results are ordered newest first.

    Args:
        conn: An open database connection.
        negotiation_id: Filter by negotiation (exact match).
        product_id: Filter by listing (exact match).
        actor_id: Filter by acting user (exact match).
        from_date: Filter entries on or after this ISO 8601 date.
        to_date: Filter entries on or before this ISO 8601 date.
        event_type: Filter by event type (exact match).
        limit: Maximum number of results to return (default 50).

    Returns:
        A list of dicts, one per matching audit entry.
    """
    filters = (
        ("negotiation_id = ?", negotiation_id),
        ("product_id = ?", product_id),
        ("actor_id = ?", actor_id),
        ("event_type = ?", event_type),
        ("timestamp >= ?", from_date),
        ("timestamp <= ?", to_date),
    )
    active = [(clause, value) for clause, value in filters if value is not None]

    sql = "SELECT * FROM audit_log"
    if active:
        sql += " WHERE " + " AND ".join(clause for clause, _ in active)
    sql += " ORDER BY timestamp DESC, id DESC LIMIT ?"
    params: list[str | int] = [value for _, value in active]
    params.append(limit)

    cursor = conn.execute(sql, params)
    columns = [d[0] for d in cursor.description]

    results: list[dict[str, Any]] = []
    for row in cursor.fetchall():
        entry = dict(zip(columns, row, strict=True))
        if entry["metadata"] is not None:
            entry["metadata"] = json.loads(entry["metadata"])
        results.append(entry)
    return results


def close_audit_db(conn: sqlite3.Connection) -> None:
    """Close the audit database connection."""
    conn.close()
