"""Convenience class for inserting audit trail entries.

Each method creates a properly structured :class:`AuditEntry` and inserts it
via :func:`insert_audit_entry`.
"""

from __future__ import annotations

import sqlite3
import threading
from decimal import Decimal

from marketplace.audit.models import AuditEntry, EventType
from marketplace.audit.store import insert_audit_entry


def _amount(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


class AuditLogger:
    """Typed convenience API for inserting audit entries.

    Inserts are serialized with a lock because the connection is shared by
    request worker threads.

    Args:
        conn: An open SQLite connection to the audit database.
        write_lock: Lock shared with every other writer on *conn*.
    """

    def __init__(
        self, conn: sqlite3.Connection, write_lock: threading.Lock | None = None
    ) -> None:
        self._conn = conn
        self._lock = write_lock if write_lock is not None else threading.Lock()

    def _insert(self, entry: AuditEntry) -> int:
        with self._lock:
            return insert_audit_entry(self._conn, entry)

    def log_negotiation_started(
        self,
        negotiation_id: str,
        product_id: str,
        buyer_id: str,
        seller_id: str,
        initial_offer: Decimal,
    ) -> int:
        """Log the creation of a negotiation.

        Returns:
            The row ID of the inserted audit entry.
        """
        return self._insert(
            AuditEntry(
                event_type=EventType.NEGOTIATION_STARTED,
                negotiation_id=negotiation_id,
                product_id=product_id,
                actor_id=buyer_id,
                actor_role="buyer",
                negotiation_status="active",
                offer_amount=_amount(initial_offer),
                metadata={"seller_id": seller_id},
            )
        )

    def log_message_sent(
        self,
        negotiation_id: str,
        sender_id: str,
        sender_role: str,
        content: str,
        offer_amount: Decimal | None,
        negotiation_status: str,
        product_id: str | None = None,
    ) -> int:
        """Log a ledger append.

        Returns:
            The row ID of the inserted audit entry.
        """
        return self._insert(
            AuditEntry(
                event_type=EventType.MESSAGE_SENT,
                negotiation_id=negotiation_id,
                product_id=product_id,
                actor_id=sender_id,
                actor_role=sender_role,
                negotiation_status=negotiation_status,
                offer_amount=_amount(offer_amount),
                content=content,
            )
        )

    def log_state_transition(
        self,
        negotiation_id: str,
        actor_id: str,
        from_status: str,
        to_status: str,
        event: str,
        offer_amount: Decimal | None = None,
        product_id: str | None = None,
    ) -> int:
        """Log a negotiation status change.

        Stores from_status, to_status, and event in metadata.

        Returns:
            The row ID of the inserted audit entry.
        """
        return self._insert(
            AuditEntry(
                event_type=EventType.STATE_TRANSITION,
                negotiation_id=negotiation_id,
                product_id=product_id,
                actor_id=actor_id,
                negotiation_status=to_status,
                offer_amount=_amount(offer_amount),
                metadata={
                    "from_status": from_status,
                    "to_status": to_status,
                    "event": event,
                },
            )
        )

    def log_contact_disclosed(
        self,
        negotiation_id: str,
        viewer_id: str,
        disclosed_id: str,
        product_id: str | None = None,
    ) -> int:
        """Log that *viewer_id* was shown *disclosed_id*'s contact details."""
        return self._insert(
            AuditEntry(
                event_type=EventType.CONTACT_DISCLOSED,
                negotiation_id=negotiation_id,
                product_id=product_id,
                actor_id=viewer_id,
                negotiation_status="completed",
                metadata={"disclosed_user_id": disclosed_id},
            )
        )

    def log_error(
        self,
        negotiation_id: str | None,
        actor_id: str | None,
        error_kind: str,
        error_message: str,
        context: str | None = None,
    ) -> int:
        """Log a refused operation.

        Returns:
            The row ID of the inserted audit entry.
        """
        meta: dict[str, str] = {"error_kind": error_kind, "error_message": error_message}
        if context is not None:
            meta["context"] = context

        return self._insert(
            AuditEntry(
                event_type=EventType.ERROR,
                negotiation_id=negotiation_id,
                actor_id=actor_id,
                metadata=meta,
            )
        )
