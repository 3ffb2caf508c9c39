"""Audit trail models for tracking negotiation events."""

from enum import StrEnum

from pydantic import BaseModel


class EventType(StrEnum):
    """Types of events tracked in the audit trail."""

    NEGOTIATION_STARTED = "negotiation_started"
    MESSAGE_SENT = "message_sent"
    STATE_TRANSITION = "state_transition"
    CONTACT_DISCLOSED = "contact_disclosed"
    ERROR = "error"


class AuditEntry(BaseModel):
    """A single audit trail entry.

    All fields except event_type are optional to accommodate different
    event types (e.g., an error may have no negotiation id).
    """

    event_type: EventType
    negotiation_id: str | None = None
    product_id: str | None = None
    actor_id: str | None = None
    actor_role: str | None = None
    negotiation_status: str | None = None
    offer_amount: str | None = None
    content: str | None = None
    metadata: dict[str, str] | None = None
