"""Request bodies for the negotiation HTTP API."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class StartNegotiationRequest(BaseModel):
    """Body of ``POST /negotiations``.

    ``seller_id`` defaults to the product's seller and ``initial_offer`` to
    the seller's asking price.
    """

    product_id: str
    seller_id: str | None = None
    initial_offer: Decimal | None = None
    content: str | None = None


class SendMessageRequest(BaseModel):
    """Body of ``POST /negotiations/{id}/messages``."""

    content: str = ""
    offer_amount: Decimal | None = None


class StartNegotiationResponse(BaseModel):
    negotiation_id: str
