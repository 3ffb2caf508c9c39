"""Transition map defining all valid (status, event) -> status mappings."""

from enum import StrEnum

from marketplace.domain.types import NegotiationStatus


class NegotiationEvent(StrEnum):
    """Events that can trigger status transitions in a negotiation."""

    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"


# All valid (current_status, event_string) -> next_status mappings.
# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[NegotiationStatus, str], NegotiationStatus] = {
    (NegotiationStatus.ACTIVE, NegotiationEvent.ACCEPT): NegotiationStatus.ACCEPTED,
    (NegotiationStatus.ACTIVE, NegotiationEvent.REJECT): NegotiationStatus.REJECTED,
    (NegotiationStatus.ACCEPTED, NegotiationEvent.COMPLETE): NegotiationStatus.COMPLETED,
}

# States that reject all events -- no outgoing transitions allowed.
TERMINAL_STATES: frozenset[NegotiationStatus] = frozenset(
    {NegotiationStatus.COMPLETED, NegotiationStatus.REJECTED}
)

# The only status in which ledger messages may be appended.
OPEN_STATES: frozenset[NegotiationStatus] = frozenset({NegotiationStatus.ACTIVE})
