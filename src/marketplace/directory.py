"""Negotiation directory: lookup by id and listing by participant.

Readers never take a lock.  Each stored value is an immutable
:class:`Negotiation` snapshot, so a reader sees either the previous or the
next snapshot of a negotiation, never a half-applied one.  Writes go
through :meth:`NegotiationDirectory.put`, which only the negotiation
service calls.
"""

from __future__ import annotations

import threading
from typing import assert_never

from marketplace.domain.errors import NotFoundError
from marketplace.domain.models import Negotiation
from marketplace.domain.types import NegotiationStatus, UserRole


class NegotiationDirectory:
    """In-memory index of negotiations by id, buyer, and seller."""

    def __init__(self) -> None:
        self._by_id: dict[str, Negotiation] = {}
        self._by_buyer: dict[str, list[str]] = {}
        self._by_seller: dict[str, list[str]] = {}
        self._index_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, negotiation_id: object) -> bool:
        return negotiation_id in self._by_id

    def put(self, negotiation: Negotiation) -> None:
        """Insert a new negotiation or replace the snapshot of an existing one."""
        if negotiation.id in self._by_id:
            self._by_id[negotiation.id] = negotiation
            return
        with self._index_lock:
            self._by_id[negotiation.id] = negotiation
            self._by_buyer.setdefault(negotiation.buyer_id, []).append(negotiation.id)
            self._by_seller.setdefault(negotiation.seller_id, []).append(negotiation.id)

    def get(self, negotiation_id: str) -> Negotiation | None:
        """Return the negotiation with *negotiation_id*, or None."""
        return self._by_id.get(negotiation_id)

    def by_id(self, negotiation_id: str) -> Negotiation:
        """Return the negotiation with *negotiation_id*.

        Raises:
            NotFoundError: If no such negotiation exists.
        """
        negotiation = self._by_id.get(negotiation_id)
        if negotiation is None:
            raise NotFoundError("negotiation", negotiation_id)
        return negotiation

    def for_participant(
        self,
        user_id: str,
        role: UserRole,
        status: NegotiationStatus | None = None,
    ) -> list[Negotiation]:
        """List negotiations where *user_id* takes part on the side given by *role*.

        Buyers see negotiations they opened, sellers see negotiations on
        their products, technicians see none.  Results are in insertion
        order, optionally filtered by *status*.
        """
        match role:
            case UserRole.BUYER:
                ids = list(self._by_buyer.get(user_id, ()))
            case UserRole.SELLER:
                ids = list(self._by_seller.get(user_id, ()))
            case UserRole.TECHNICIAN:
                ids = []
            case _:
                assert_never(role)

        negotiations = [self._by_id[nid] for nid in ids]
        if status is not None:
            negotiations = [n for n in negotiations if n.status == status]
        return negotiations

    def all(self) -> list[Negotiation]:
        """Return every negotiation in insertion order."""
        return list(self._by_id.values())
