"""Tests for the append-only offer ledger."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from marketplace.directory import NegotiationDirectory
from marketplace.domain.errors import NotFoundError, ValidationError
from marketplace.domain.models import Message, Negotiation
from marketplace.domain.types import UserRole
from marketplace.ledger import OfferLedger, new_id, utc_now

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def directory() -> NegotiationDirectory:
    d = NegotiationDirectory()
    d.put(
        Negotiation(
            id="n1",
            product_id="p1",
            buyer_id="b1",
            seller_id="s1",
            initial_offer=Decimal("650"),
            messages=(
                Message(
                    id="m0",
                    sender_id="b1",
                    sender_role=UserRole.BUYER,
                    content="My offer is $650.",
                    offer_amount=Decimal("650"),
                    timestamp=T0,
                ),
            ),
            created_at=T0,
            updated_at=T0,
        )
    )
    return d


@pytest.fixture
def ledger(directory: NegotiationDirectory) -> OfferLedger:
    ids = iter(f"m{i}" for i in range(1, 100))
    return OfferLedger(
        directory,
        clock=lambda: T0 + timedelta(minutes=1),
        id_factory=lambda: next(ids),
    )


class TestBuildMessage:
    def test_builds_without_recording(
        self, ledger: OfferLedger, directory: NegotiationDirectory
    ) -> None:
        msg = ledger.build_message("s1", UserRole.SELLER, "How about $680?", "680")
        assert msg.offer_amount == Decimal("680")
        assert len(directory.by_id("n1").messages) == 1

    def test_requires_content_or_offer(self, ledger: OfferLedger) -> None:
        with pytest.raises(ValidationError, match="content or an offer"):
            ledger.build_message("b1", UserRole.BUYER, "  ")

    def test_rejects_non_positive_offer(self, ledger: OfferLedger) -> None:
        with pytest.raises(ValidationError, match="must be positive"):
            ledger.build_message("b1", UserRole.BUYER, "free?", Decimal("0"))

    def test_timestamp_never_precedes_previous_entry(self, directory: NegotiationDirectory) -> None:
        early = OfferLedger(directory, clock=lambda: T0 - timedelta(hours=1))
        msg = early.build_message("b1", UserRole.BUYER, "hi", after=T0)
        assert msg.timestamp == T0


class TestAppend:
    def test_appends_in_order_and_updates_current_offer(
        self, ledger: OfferLedger, directory: NegotiationDirectory
    ) -> None:
        ledger.append("n1", "s1", UserRole.SELLER, "Can you do $680?", Decimal("680"))
        ledger.append("n1", "b1", UserRole.BUYER, "Let me think.")

        messages = ledger.messages("n1")
        assert [m.id for m in messages] == ["m0", "m1", "m2"]
        assert ledger.current_offer("n1") == Decimal("680")
        assert directory.by_id("n1").updated_at == T0 + timedelta(minutes=1)

    def test_previous_snapshot_is_unchanged(
        self, ledger: OfferLedger, directory: NegotiationDirectory
    ) -> None:
        before = directory.by_id("n1")
        ledger.append("n1", "s1", UserRole.SELLER, "", Decimal("690"))
        assert len(before.messages) == 1
        assert before.current_offer == Decimal("650")

    def test_invalid_append_leaves_ledger_untouched(
        self, ledger: OfferLedger, directory: NegotiationDirectory
    ) -> None:
        with pytest.raises(ValidationError):
            ledger.append("n1", "s1", UserRole.SELLER, "", None)
        assert len(directory.by_id("n1").messages) == 1

    def test_unknown_negotiation(self, ledger: OfferLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.append("nope", "b1", UserRole.BUYER, "hi")

    def test_commit_hook_receives_new_snapshot(self, directory: NegotiationDirectory) -> None:
        committed: list[Negotiation] = []
        ledger = OfferLedger(directory, commit=committed.append)

        ledger.append("n1", "b1", UserRole.BUYER, "still there?")

        assert len(committed) == 1
        assert len(committed[0].messages) == 2
        # The directory is only updated through the commit hook.
        assert len(directory.by_id("n1").messages) == 1


class TestHelpers:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is UTC

    def test_new_id_is_unique(self) -> None:
        assert len({new_id() for _ in range(100)}) == 100
