"""Domain-specific exception classes for the negotiation core.

Every error carries a stable ``kind`` so callers can branch on the failure
category without matching message text.
"""

from __future__ import annotations

from marketplace.domain.types import NegotiationStatus


class MarketplaceError(Exception):
    """Base class for all domain errors in the negotiation core."""

    kind: str = "error"


class ValidationError(MarketplaceError):
    """Raised for malformed or out-of-range input (e.g. a non-positive offer)."""

    kind = "validation"


class AuthorizationError(MarketplaceError):
    """Raised when an actor lacks permission for the requested action.

    Attributes:
        actor_id: The identity that attempted the action.
        action: The action that was refused.
    """

    kind = "authorization"

    def __init__(self, actor_id: str, action: str, reason: str) -> None:
        self.actor_id = actor_id
        self.action = action
        super().__init__(f"{actor_id!r} may not {action}: {reason}")


class NotFoundError(MarketplaceError):
    """Raised when a negotiation, product, or user id is unknown.

    Attributes:
        entity: The kind of record looked up (``"negotiation"``, ``"product"``...).
        entity_id: The id that was not found.
    """

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id!r} not found")


class InvalidStateError(MarketplaceError):
    """Raised when an operation is not legal in the negotiation's current status.

    Attributes:
        current_status: The status the negotiation was in.
        action: The action that was rejected.
    """

    kind = "invalid_state"

    def __init__(self, current_status: NegotiationStatus, action: str) -> None:
        self.current_status = current_status
        self.action = action
        super().__init__(f"Cannot {action} while negotiation is '{current_status}'")


class NegotiationBusyError(MarketplaceError):
    """Raised when a negotiation's lock could not be acquired in time."""

    kind = "busy"

    def __init__(self, negotiation_id: str, timeout: float) -> None:
        self.negotiation_id = negotiation_id
        self.timeout = timeout
        super().__init__(
            f"Negotiation {negotiation_id!r} is busy (waited {timeout:g}s for its lock)"
        )
