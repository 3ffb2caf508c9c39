"""Pydantic v2 models for domain data structures in the negotiation core."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field, field_validator, model_validator

from marketplace.domain.types import NegotiationStatus, ProductStatus, UserRole


def _reject_float(v: object) -> object:
    if isinstance(v, float):
        raise ValueError("Use Decimal or string, not float, for monetary values")
    return v


class UserProfile(BaseModel):
    """An authenticated marketplace user as supplied by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    role: UserRole
    phone_number: str | None = None


class Product(BaseModel):
    """A catalog listing as supplied by the product directory.

    The negotiation core reads these records but never mutates them.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    seller_id: str
    seller_price: Decimal
    seller_phone: str | None = None
    status: ProductStatus = ProductStatus.PENDING

    @field_validator("seller_price", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("seller_price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        """Ensure seller_price is strictly positive."""
        if v <= 0:
            raise ValueError("seller_price must be positive")
        return v


class Message(BaseModel):
    """A single ledger entry, optionally carrying a proposed price.

    ``sender_role`` is a snapshot of the author's role at send time.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    sender_id: str
    sender_role: UserRole
    content: str = ""
    offer_amount: Decimal | None = None
    timestamp: datetime

    @field_validator("offer_amount", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("offer_amount")
    @classmethod
    def offer_must_be_positive(cls, v: Decimal | None) -> Decimal | None:
        """Ensure a present offer_amount is strictly positive."""
        if v is not None and v <= 0:
            raise ValueError("offer_amount must be positive")
        return v

    @model_validator(mode="after")
    def content_or_offer_required(self) -> Message:
        """A message must carry text, an offer, or both."""
        if not self.content.strip() and self.offer_amount is None:
            raise ValueError("content may be empty only when offer_amount is present")
        return self


class Negotiation(BaseModel):
    """One buyer and one seller negotiating the price of one product.

    Snapshots are immutable; every mutation validates a new instance.
    ``current_offer`` is derived from the message ledger rather than stored
    independently.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    buyer_id: str
    seller_id: str
    initial_offer: Decimal
    messages: tuple[Message, ...]
    status: NegotiationStatus = NegotiationStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    @field_validator("initial_offer", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("initial_offer")
    @classmethod
    def initial_offer_must_be_positive(cls, v: Decimal) -> Decimal:
        """Ensure initial_offer is strictly positive."""
        if v <= 0:
            raise ValueError("initial_offer must be positive")
        return v

    @model_validator(mode="after")
    def ledger_invariants(self) -> Negotiation:
        """Check participant and ledger invariants."""
        if self.buyer_id == self.seller_id:
            raise ValueError("buyer_id and seller_id must differ")
        if not self.messages:
            raise ValueError("messages must not be empty")
        participants = {self.buyer_id, self.seller_id}
        previous: datetime | None = None
        for message in self.messages:
            if message.sender_id not in participants:
                raise ValueError(
                    f"message {message.id} sent by non-participant {message.sender_id}"
                )
            if previous is not None and message.timestamp < previous:
                raise ValueError("message timestamps must be non-decreasing")
            previous = message.timestamp
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def current_offer(self) -> Decimal:
        """The latest offer in the ledger, or the initial offer if none since."""
        for message in reversed(self.messages):
            if message.offer_amount is not None:
                return message.offer_amount
        return self.initial_offer

    def is_participant(self, user_id: str) -> bool:
        """Return True if *user_id* is the buyer or the seller."""
        return user_id in (self.buyer_id, self.seller_id)


class ContactCard(BaseModel):
    """Contact details released to the counterparty on completion."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    phone_number: str | None = None


class NegotiationView(BaseModel):
    """Participant-facing projection of a negotiation.

    ``counterparty_contact`` is populated only once the negotiation is
    completed; it is never stored.
    """

    model_config = ConfigDict(frozen=True)

    negotiation: Negotiation
    viewer_id: str
    viewer_role: UserRole
    counterparty_contact: ContactCard | None = None
