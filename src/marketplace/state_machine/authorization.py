"""Role and participant authorization rules for negotiation actions.

Every check matches exhaustively over :class:`UserRole` so that adding a
role forces each rule to be revisited.
"""

from __future__ import annotations

from enum import StrEnum
from typing import assert_never

from marketplace.domain.errors import AuthorizationError
from marketplace.domain.models import Negotiation, UserProfile
from marketplace.domain.types import UserRole
from marketplace.state_machine.transitions import NegotiationEvent


class Action(StrEnum):
    """Caller-initiated operations subject to authorization."""

    START = "start a negotiation"
    SEND_MESSAGE = "send a message"
    ACCEPT = "accept the offer"
    REJECT = "reject the offer"
    COMPLETE = "complete the purchase"
    VIEW = "view the negotiation"


EVENT_ACTIONS: dict[str, Action] = {
    NegotiationEvent.ACCEPT: Action.ACCEPT,
    NegotiationEvent.REJECT: Action.REJECT,
    NegotiationEvent.COMPLETE: Action.COMPLETE,
}


def authorize_start(actor: UserProfile) -> None:
    """Only buyers may open a negotiation.

    Raises:
        AuthorizationError: If *actor* is not a buyer.
    """
    match actor.role:
        case UserRole.BUYER:
            return
        case UserRole.SELLER | UserRole.TECHNICIAN:
            raise AuthorizationError(actor.id, Action.START, f"role is {actor.role}, not buyer")
        case _:
            assert_never(actor.role)


def participant_role(negotiation: Negotiation, user_id: str) -> UserRole | None:
    """Return the side *user_id* holds in *negotiation*, or None for outsiders."""
    if user_id == negotiation.buyer_id:
        return UserRole.BUYER
    if user_id == negotiation.seller_id:
        return UserRole.SELLER
    return None


def authorize_participant(negotiation: Negotiation, user_id: str, action: Action) -> UserRole:
    """Require *user_id* to be the buyer or the seller of *negotiation*.

    Returns:
        The side the caller holds.

    Raises:
        AuthorizationError: If the caller is not a participant.
    """
    side = participant_role(negotiation, user_id)
    if side is None:
        raise AuthorizationError(user_id, action, "not a participant in this negotiation")
    return side


def authorize_transition(negotiation: Negotiation, user_id: str, event: str) -> None:
    """Check that *user_id* may trigger *event* on *negotiation*.

    - ``accept``: only the seller; a buyer cannot accept their own offer.
    - ``complete``: only the buyer.
    - ``reject``: either participant.

    Raises:
        AuthorizationError: If the caller may not trigger the event.
        ValueError: If *event* is not a caller-initiated event.
    """
    try:
        action = EVENT_ACTIONS[event]
    except KeyError:
        raise ValueError(f"Unknown negotiation event: {event!r}") from None

    side = authorize_participant(negotiation, user_id, action)
    required = _required_side(NegotiationEvent(event))
    if required is not None and side is not required:
        raise AuthorizationError(user_id, action, f"only the {required} may do this")


def _required_side(event: NegotiationEvent) -> UserRole | None:
    match event:
        case NegotiationEvent.ACCEPT:
            return UserRole.SELLER
        case NegotiationEvent.COMPLETE:
            return UserRole.BUYER
        case NegotiationEvent.REJECT:
            return None
        case _:
            assert_never(event)
