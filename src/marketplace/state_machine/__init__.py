"""Negotiation state machine with transition validation and authorization."""

from marketplace.state_machine.authorization import (
    Action,
    authorize_participant,
    authorize_start,
    authorize_transition,
    participant_role,
)
from marketplace.state_machine.machine import NegotiationStateMachine
from marketplace.state_machine.transitions import (
    OPEN_STATES,
    TERMINAL_STATES,
    TRANSITIONS,
    NegotiationEvent,
)

__all__ = [
    "OPEN_STATES",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "Action",
    "NegotiationEvent",
    "NegotiationStateMachine",
    "authorize_participant",
    "authorize_start",
    "authorize_transition",
    "participant_role",
]
