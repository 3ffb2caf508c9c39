"""Append-only offer ledger.

Each negotiation owns an ordered sequence of :class:`Message` entries.
Entries are only ever appended; there is no edit or delete operation.  The
negotiation's current offer is derived from the ledger: it is the amount of
the latest message that carries one.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

from marketplace.directory import NegotiationDirectory
from marketplace.domain.errors import ValidationError
from marketplace.domain.models import Message, Negotiation
from marketplace.domain.money import require_positive, to_money
from marketplace.domain.types import UserRole

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


class OfferLedger:
    """Ordered message log per negotiation with derived current offer.

    Args:
        directory: Where negotiations are looked up.
        commit: Called with the updated snapshot after a successful append.
            Defaults to ``directory.put``.  The negotiation service passes a
            callable that persists before publishing.
        clock: Source of timestamps.
        id_factory: Source of message ids.
    """

    def __init__(
        self,
        directory: NegotiationDirectory,
        commit: Callable[[Negotiation], None] | None = None,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._directory = directory
        self._commit = commit or directory.put
        self._clock = clock
        self._id_factory = id_factory

    def build_message(
        self,
        sender_id: str,
        sender_role: UserRole,
        content: str,
        offer_amount: Decimal | int | str | None = None,
        after: datetime | None = None,
    ) -> Message:
        """Validate input and create a message without recording it.

        Args:
            sender_id: Author identity.
            sender_role: Author role snapshot.
            content: Free text; may be empty only when *offer_amount* is given.
            offer_amount: Optional proposed price, strictly positive.
            after: Timestamp of the previous ledger entry; the new timestamp
                is never earlier than this.

        Raises:
            ValidationError: On empty content without an offer, or a
                non-positive or non-numeric offer.
        """
        amount: Decimal | None = None
        if offer_amount is not None:
            amount = require_positive(to_money(offer_amount))
        if not content.strip() and amount is None:
            raise ValidationError("A message needs content or an offer amount")

        timestamp = self._clock()
        if after is not None and timestamp < after:
            timestamp = after

        return Message(
            id=self._id_factory(),
            sender_id=sender_id,
            sender_role=sender_role,
            content=content,
            offer_amount=amount,
            timestamp=timestamp,
        )

    def extend(self, negotiation: Negotiation, message: Message) -> Negotiation:
        """Return a new snapshot of *negotiation* with *message* appended."""
        return Negotiation.model_validate(
            {
                **negotiation.model_dump(exclude={"current_offer", "messages"}),
                "messages": (*negotiation.messages, message),
                "updated_at": message.timestamp,
            }
        )

    def append(
        self,
        negotiation_id: str,
        sender_id: str,
        sender_role: UserRole,
        content: str,
        offer_amount: Decimal | int | str | None = None,
    ) -> Message:
        """Append a message to a negotiation's ledger.

        The caller is responsible for serializing appends per negotiation.

        Returns:
            The recorded message.

        Raises:
            NotFoundError: If the negotiation does not exist.
            ValidationError: If the message is malformed.
        """
        negotiation = self._directory.by_id(negotiation_id)
        message = self.build_message(
            sender_id,
            sender_role,
            content,
            offer_amount,
            after=negotiation.messages[-1].timestamp,
        )
        self._commit(self.extend(negotiation, message))
        return message

    def current_offer(self, negotiation_id: str) -> Decimal:
        """Return the latest effective offer for a negotiation.

        Raises:
            NotFoundError: If the negotiation does not exist.
        """
        return self._directory.by_id(negotiation_id).current_offer

    def messages(self, negotiation_id: str) -> tuple[Message, ...]:
        """Return the ledger entries of a negotiation in append order."""
        return self._directory.by_id(negotiation_id).messages
