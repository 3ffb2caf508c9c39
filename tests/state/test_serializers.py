"""Tests for negotiation snapshot serialization."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pydantic
import pytest

from marketplace.domain.models import Message, Negotiation
from marketplace.domain.types import NegotiationStatus, UserRole
from marketplace.state.serializers import (
    deserialize_messages,
    deserialize_negotiation,
    serialize_messages,
    serialize_negotiation,
)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def negotiation() -> Negotiation:
    messages = (
        Message(
            id="m1",
            sender_id="b1",
            sender_role=UserRole.BUYER,
            content="My offer is $650.",
            offer_amount=Decimal("650"),
            timestamp=T0,
        ),
        Message(
            id="m2",
            sender_id="s1",
            sender_role=UserRole.SELLER,
            content="counter",
            offer_amount=Decimal("680.50"),
            timestamp=T0 + timedelta(seconds=1),
        ),
        Message(
            id="m3",
            sender_id="b1",
            sender_role=UserRole.BUYER,
            content="ok, let me think",
            timestamp=T0 + timedelta(seconds=2),
        ),
    )
    return Negotiation(
        id="n1",
        product_id="p1",
        buyer_id="b1",
        seller_id="s1",
        initial_offer=Decimal("650"),
        messages=messages,
        status=NegotiationStatus.ACCEPTED,
        created_at=T0,
        updated_at=T0 + timedelta(seconds=3),
    )


class TestNegotiationRoundTrip:
    def test_preserves_order_offer_and_status(self, negotiation: Negotiation) -> None:
        restored = deserialize_negotiation(serialize_negotiation(negotiation))

        assert [m.id for m in restored.messages] == ["m1", "m2", "m3"]
        assert restored.current_offer == Decimal("680.50")
        assert restored.status is NegotiationStatus.ACCEPTED
        assert restored == negotiation

    def test_amounts_are_written_as_strings(self, negotiation: Negotiation) -> None:
        payload = json.loads(serialize_negotiation(negotiation))
        assert payload["initial_offer"] == "650"
        assert payload["current_offer"] == "680.50"
        assert payload["messages"][1]["offer_amount"] == "680.50"
        assert payload["messages"][2]["offer_amount"] is None

    def test_tampered_payload_is_rejected(self, negotiation: Negotiation) -> None:
        payload = json.loads(serialize_negotiation(negotiation))
        payload["messages"][0]["sender_id"] = "intruder"
        with pytest.raises(pydantic.ValidationError, match="non-participant"):
            deserialize_negotiation(json.dumps(payload))


class TestMessageLedger:
    def test_serializes_as_ordered_list(self, negotiation: Negotiation) -> None:
        raw = deserialize_messages(serialize_messages(negotiation.messages))
        assert [m["id"] for m in raw] == ["m1", "m2", "m3"]
        assert raw[0]["sender_role"] == "buyer"
        assert raw[0]["timestamp"].startswith("2026-03-01T12:00:00")
