"""NegotiationStateMachine class with trigger, history, and valid_events."""

from __future__ import annotations

from marketplace.domain.errors import InvalidStateError
from marketplace.domain.types import NegotiationStatus
from marketplace.state_machine.transitions import OPEN_STATES, TERMINAL_STATES, TRANSITIONS


class NegotiationStateMachine:
    """Finite state machine governing the negotiation lifecycle.

    Validates transitions against the transition map and records the
    ``(from, event, to)`` history of every status change it applies.

    Usage::

        sm = NegotiationStateMachine()
        sm.trigger("accept")     # -> ACCEPTED
        sm.trigger("complete")   # -> COMPLETED (terminal)
    """

    def __init__(
        self,
        initial_status: NegotiationStatus = NegotiationStatus.ACTIVE,
    ) -> None:
        self._status: NegotiationStatus = initial_status
        self._history: list[tuple[NegotiationStatus, str, NegotiationStatus]] = []

    @property
    def status(self) -> NegotiationStatus:
        """Return the current negotiation status."""
        return self._status

    @property
    def is_terminal(self) -> bool:
        """Return True if the machine is in a terminal status (COMPLETED or REJECTED)."""
        return self._status in TERMINAL_STATES

    @property
    def accepts_messages(self) -> bool:
        """Return True if ledger messages may be appended in the current status."""
        return self._status in OPEN_STATES

    @property
    def history(self) -> list[tuple[NegotiationStatus, str, NegotiationStatus]]:
        """Return a copy of the transition history in chronological order."""
        return list(self._history)

    def require_open(self, action: str) -> None:
        """Raise unless the current status accepts ledger messages.

        Raises:
            InvalidStateError: If the negotiation is not ``active``.
        """
        if not self.accepts_messages:
            raise InvalidStateError(self._status, action)

    def trigger(self, event: str) -> NegotiationStatus:
        """Apply an event to the current status and transition.

        Args:
            event: The event string (e.g. ``"accept"``).

        Returns:
            The new status after the transition.

        Raises:
            InvalidStateError: If the transition is not allowed from the
                current status, or if the machine is in a terminal status.
        """
        if self.is_terminal:
            raise InvalidStateError(self._status, event)

        key = (self._status, event)
        if key not in TRANSITIONS:
            raise InvalidStateError(self._status, event)

        old_status = self._status
        new_status = TRANSITIONS[key]
        self._history.append((old_status, event, new_status))
        self._status = new_status
        return new_status

    def get_valid_events(self) -> list[str]:
        """Return a sorted list of events valid from the current status."""
        if self.is_terminal:
            return []
        return sorted(event for status, event in TRANSITIONS if status == self._status)
