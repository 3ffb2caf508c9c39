"""Negotiation service: the operation contract exposed to the API layer.

Owns the negotiation lifecycle.  Every mutation of a negotiation runs under
that negotiation's exclusive lock and follows the same shape:

1. read the current snapshot,
2. authorize the caller and check the status,
3. build the next snapshot,
4. persist it (when a store is configured), then publish it to the directory.

Any failure before step 4 leaves both storage and the directory untouched,
so each operation either fully applies or has no effect.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from decimal import Decimal

import structlog

from marketplace.audit.logger import AuditLogger
from marketplace.collaborators.interfaces import IdentityProvider, ProductDirectory
from marketplace.directory import NegotiationDirectory
from marketplace.domain.errors import (
    AuthorizationError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.models import (
    ContactCard,
    Message,
    Negotiation,
    NegotiationView,
    UserProfile,
)
from marketplace.domain.money import require_positive, to_money
from marketplace.domain.types import NegotiationStatus, ProductStatus, UserRole
from marketplace.ledger import Clock, OfferLedger, new_id, utc_now
from marketplace.locks import KeyedLocks
from marketplace.observability.metrics import (
    ACTIVE_NEGOTIATIONS,
    DEALS_COMPLETED,
    OFFERS_MADE,
    OPERATIONS_REFUSED,
)
from marketplace.state.store import NegotiationStore
from marketplace.state_machine.authorization import (
    Action,
    authorize_participant,
    authorize_start,
    authorize_transition,
)
from marketplace.state_machine.machine import NegotiationStateMachine
from marketplace.state_machine.transitions import NegotiationEvent

logger = structlog.get_logger()


def _format_amount(amount: Decimal) -> str:
    return f"${amount}"


class NegotiationService:
    """Start negotiations, append offers, and drive status transitions.

    Args:
        identity: Resolves user ids to profiles (role, phone number).
        products: Read-only catalog lookup.
        directory: Negotiation index; a fresh one is created if omitted.
        store: Optional SQLite store; snapshots are saved before publication.
        audit_logger: Optional audit trail writer.
        clock: Source of timestamps.
        id_factory: Source of negotiation and message ids.
        lock_timeout: Seconds to wait for a negotiation's lock.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        products: ProductDirectory,
        directory: NegotiationDirectory | None = None,
        store: NegotiationStore | None = None,
        audit_logger: AuditLogger | None = None,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = new_id,
        lock_timeout: float = 5.0,
    ) -> None:
        self._identity = identity
        self._products = products
        self.directory = directory if directory is not None else NegotiationDirectory()
        self._store = store
        self._audit = audit_logger
        self._clock = clock
        self._id_factory = id_factory
        self._locks = KeyedLocks(timeout=lock_timeout)
        self.ledger = OfferLedger(
            self.directory,
            commit=self._commit,
            clock=clock,
            id_factory=id_factory,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, negotiation: Negotiation) -> None:
        if self._store is not None:
            self._store.save(negotiation)
        self.directory.put(negotiation)

    def _resolve_actor(self, user_id: str, action: Action) -> UserProfile:
        profile = self._identity.get_user(user_id)
        if profile is None:
            raise AuthorizationError(user_id, action, "unknown user")
        return profile

    @contextmanager
    def _reported(
        self, action: Action, actor_id: str, negotiation_id: str | None = None
    ) -> Iterator[None]:
        """Log and audit a refused operation, then let the error propagate."""
        try:
            yield
        except MarketplaceError as exc:
            OPERATIONS_REFUSED.labels(action=action.name.lower(), kind=exc.kind).inc()
            logger.warning(
                "Negotiation operation refused",
                action=str(action),
                actor_id=actor_id,
                negotiation_id=negotiation_id,
                error_kind=exc.kind,
                reason=str(exc),
            )
            self._audit_safely(
                "log_error",
                negotiation_id=negotiation_id,
                actor_id=actor_id,
                error_kind=exc.kind,
                error_message=str(exc),
                context=str(action),
            )
            raise

    def _audit_safely(self, method: str, **kwargs: object) -> None:
        """Write an audit entry after the fact; failures are logged, not raised."""
        if self._audit is None:
            return
        try:
            getattr(self._audit, method)(**kwargs)
        except Exception:
            logger.exception("Audit write failed", audit_method=method)

    def _transition(
        self, negotiation_id: str, caller_id: str, event: NegotiationEvent
    ) -> Negotiation:
        self.directory.by_id(negotiation_id)
        with self._locks.hold(negotiation_id):
            negotiation = self.directory.by_id(negotiation_id)
            authorize_transition(negotiation, caller_id, event)

            machine = NegotiationStateMachine(negotiation.status)
            new_status = machine.trigger(event)
            now = max(self._clock(), negotiation.updated_at)
            updated = Negotiation.model_validate(
                {
                    **negotiation.model_dump(exclude={"current_offer", "messages"}),
                    "messages": negotiation.messages,
                    "status": new_status,
                    "updated_at": now,
                }
            )
            self._commit(updated)

        from_status, applied, to_status = machine.history[-1]
        if from_status == NegotiationStatus.ACTIVE:
            ACTIVE_NEGOTIATIONS.dec()
        if to_status == NegotiationStatus.COMPLETED:
            DEALS_COMPLETED.inc()

        logger.info(
            "Negotiation status changed",
            negotiation_id=negotiation_id,
            actor_id=caller_id,
            event=applied,
            from_status=str(from_status),
            to_status=str(to_status),
            current_offer=str(updated.current_offer),
        )
        self._audit_safely(
            "log_state_transition",
            negotiation_id=negotiation_id,
            actor_id=caller_id,
            from_status=from_status.value,
            to_status=to_status.value,
            event=applied,
            offer_amount=updated.current_offer,
            product_id=updated.product_id,
        )
        return updated

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def restore(self, negotiations: list[Negotiation]) -> None:
        """Publish previously persisted negotiations without re-saving them."""
        for negotiation in negotiations:
            self.directory.put(negotiation)
        active = sum(1 for n in self.directory.all() if n.status == NegotiationStatus.ACTIVE)
        ACTIVE_NEGOTIATIONS.set(active)
        if negotiations:
            logger.info("Negotiation recovery complete", recovered=len(negotiations), active=active)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(
        self,
        buyer_id: str,
        product_id: str,
        seller_id: str | None = None,
        initial_offer: Decimal | int | str | None = None,
        content: str | None = None,
    ) -> str:
        """Open a negotiation on *product_id* and seed it with the buyer's offer.

        Args:
            buyer_id: The caller; must hold the buyer role.
            product_id: The listing to negotiate; must be verified.
            seller_id: Must equal the listing's seller.  Defaults to it.
            initial_offer: Opening price.  Defaults to the seller's asking price.
            content: Opening message text.  A default sentence is used if empty.

        Returns:
            The new negotiation's id.

        Raises:
            AuthorizationError: If the caller is unknown or not a buyer.
            NotFoundError: If the product does not exist.
            ValidationError: If the listing is not open for negotiation, the
                seller does not match, or the offer is not positive.
        """
        with self._reported(Action.START, buyer_id):
            buyer = self._resolve_actor(buyer_id, Action.START)
            authorize_start(buyer)

            product = self._products.get_product(product_id)
            if product is None:
                raise NotFoundError("product", product_id)
            if product.status != ProductStatus.VERIFIED:
                raise ValidationError(
                    f"product {product_id!r} is {product.status}, "
                    "only verified products can be negotiated"
                )
            if seller_id is None:
                seller_id = product.seller_id
            elif seller_id != product.seller_id:
                raise ValidationError(f"{seller_id!r} is not the seller of product {product_id!r}")
            if seller_id == buyer_id:
                raise ValidationError("buyer and seller must be different users")

            amount = require_positive(
                to_money(initial_offer if initial_offer is not None else product.seller_price),
                "initial_offer",
            )
            text = content if content and content.strip() else (
                f"I'm interested in this product. My offer is {_format_amount(amount)}."
            )

            seed = self.ledger.build_message(buyer_id, UserRole.BUYER, text, amount)
            negotiation = Negotiation(
                id=self._id_factory(),
                product_id=product_id,
                buyer_id=buyer_id,
                seller_id=seller_id,
                initial_offer=amount,
                messages=(seed,),
                status=NegotiationStatus.ACTIVE,
                created_at=seed.timestamp,
                updated_at=seed.timestamp,
            )
            with self._locks.hold(negotiation.id):
                self._commit(negotiation)

        ACTIVE_NEGOTIATIONS.inc()
        OFFERS_MADE.inc()
        logger.info(
            "Negotiation started",
            negotiation_id=negotiation.id,
            product_id=product_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            initial_offer=str(amount),
        )
        self._audit_safely(
            "log_negotiation_started",
            negotiation_id=negotiation.id,
            product_id=product_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            initial_offer=amount,
        )
        return negotiation.id

    def send_message(
        self,
        negotiation_id: str,
        sender_id: str,
        content: str = "",
        offer_amount: Decimal | int | str | None = None,
    ) -> Message:
        """Append a message, optionally with a new offer, to an active negotiation.

        The status check precedes payload validation, so a non-active
        negotiation always yields ``InvalidStateError``.

        Returns:
            The recorded message.

        Raises:
            NotFoundError: If the negotiation does not exist.
            AuthorizationError: If the sender is not a participant.
            InvalidStateError: If the negotiation is not active.
            ValidationError: If content is empty with no offer, or the offer
                is not positive.
        """
        with self._reported(Action.SEND_MESSAGE, sender_id, negotiation_id):
            self.directory.by_id(negotiation_id)
            with self._locks.hold(negotiation_id):
                negotiation = self.directory.by_id(negotiation_id)
                side = authorize_participant(negotiation, sender_id, Action.SEND_MESSAGE)
                NegotiationStateMachine(negotiation.status).require_open(Action.SEND_MESSAGE)

                amount = None
                if offer_amount is not None:
                    amount = require_positive(to_money(offer_amount))
                    if not content.strip():
                        content = f"I offer {_format_amount(amount)} for this item."

                message = self.ledger.append(negotiation_id, sender_id, side, content, amount)

        if amount is not None:
            OFFERS_MADE.inc()
        logger.info(
            "Negotiation message sent",
            negotiation_id=negotiation_id,
            sender_id=sender_id,
            sender_role=str(side),
            offer_amount=None if amount is None else str(amount),
        )
        self._audit_safely(
            "log_message_sent",
            negotiation_id=negotiation_id,
            sender_id=sender_id,
            sender_role=side.value,
            content=message.content,
            offer_amount=amount,
            negotiation_status=NegotiationStatus.ACTIVE.value,
            product_id=negotiation.product_id,
        )
        return message

    def accept_offer(self, negotiation_id: str, caller_id: str) -> Negotiation:
        """Seller accepts the current offer: ``active`` -> ``accepted``.

        Raises:
            NotFoundError: If the negotiation does not exist.
            AuthorizationError: If the caller is not the seller.
            InvalidStateError: If the negotiation is not active.
        """
        with self._reported(Action.ACCEPT, caller_id, negotiation_id):
            return self._transition(negotiation_id, caller_id, NegotiationEvent.ACCEPT)

    def reject_offer(self, negotiation_id: str, caller_id: str) -> Negotiation:
        """Either participant ends the negotiation: ``active`` -> ``rejected``.

        Raises:
            NotFoundError: If the negotiation does not exist.
            AuthorizationError: If the caller is not a participant.
            InvalidStateError: If the negotiation is not active.
        """
        with self._reported(Action.REJECT, caller_id, negotiation_id):
            return self._transition(negotiation_id, caller_id, NegotiationEvent.REJECT)

    def complete_purchase(self, negotiation_id: str, caller_id: str) -> Negotiation:
        """Buyer completes an accepted deal: ``accepted`` -> ``completed``.

        Completion is what makes contact details visible through :meth:`view`.

        Raises:
            NotFoundError: If the negotiation does not exist.
            AuthorizationError: If the caller is not the buyer.
            InvalidStateError: If the negotiation is not accepted.
        """
        with self._reported(Action.COMPLETE, caller_id, negotiation_id):
            return self._transition(negotiation_id, caller_id, NegotiationEvent.COMPLETE)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def by_id(self, negotiation_id: str) -> Negotiation:
        """Return a negotiation snapshot.

        Raises:
            NotFoundError: If the negotiation does not exist.
        """
        return self.directory.by_id(negotiation_id)

    def for_participant(
        self,
        user_id: str,
        role: UserRole,
        status: NegotiationStatus | None = None,
    ) -> list[Negotiation]:
        """List a user's negotiations on the side given by *role*."""
        return self.directory.for_participant(user_id, role, status)

    def current_offer(self, negotiation_id: str) -> Decimal:
        """Return the latest effective offer of a negotiation."""
        return self.ledger.current_offer(negotiation_id)

    def view(self, negotiation_id: str, viewer_id: str) -> NegotiationView:
        """Participant-facing projection, with counterparty contact once completed.

        Raises:
            NotFoundError: If the negotiation does not exist.
            AuthorizationError: If the viewer is not a participant.
        """
        with self._reported(Action.VIEW, viewer_id, negotiation_id):
            negotiation = self.directory.by_id(negotiation_id)
            side = authorize_participant(negotiation, viewer_id, Action.VIEW)

        contact: ContactCard | None = None
        if negotiation.status == NegotiationStatus.COMPLETED:
            contact = self._counterparty_contact(negotiation, side)
            self._audit_safely(
                "log_contact_disclosed",
                negotiation_id=negotiation_id,
                viewer_id=viewer_id,
                disclosed_id=contact.user_id,
                product_id=negotiation.product_id,
            )

        return NegotiationView(
            negotiation=negotiation,
            viewer_id=viewer_id,
            viewer_role=side,
            counterparty_contact=contact,
        )

    def _counterparty_contact(self, negotiation: Negotiation, side: UserRole) -> ContactCard:
        if side == UserRole.BUYER:
            product = self._products.get_product(negotiation.product_id)
            phone = product.seller_phone if product is not None else None
            if not phone:
                seller = self._identity.get_user(negotiation.seller_id)
                phone = seller.phone_number if seller is not None else None
            return ContactCard(
                user_id=negotiation.seller_id, role=UserRole.SELLER, phone_number=phone
            )

        buyer = self._identity.get_user(negotiation.buyer_id)
        return ContactCard(
            user_id=negotiation.buyer_id,
            role=UserRole.BUYER,
            phone_number=buyer.phone_number if buyer is not None else None,
        )
