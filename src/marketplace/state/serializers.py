"""Serialization helpers for negotiation snapshots.

Decimal amounts are written as strings so no precision is lost; datetimes
are ISO 8601.  ``current_offer`` is emitted for readers but ignored on the
way back in, since it is always re-derived from the ledger.
"""

from __future__ import annotations

import json
from typing import Any

from marketplace.domain.models import Message, Negotiation


def serialize_negotiation(negotiation: Negotiation) -> str:
    """JSON-encode a full negotiation snapshot."""
    return negotiation.model_dump_json()


def deserialize_negotiation(json_str: str) -> Negotiation:
    """Rebuild a negotiation from ``serialize_negotiation`` output.

    Raises:
        pydantic.ValidationError: If the payload violates a model invariant.
    """
    return Negotiation.model_validate_json(json_str)


def serialize_messages(messages: tuple[Message, ...]) -> str:
    """JSON-encode a message ledger as a list, preserving order."""
    return json.dumps([m.model_dump(mode="json") for m in messages])


def deserialize_messages(json_str: str) -> list[dict[str, Any]]:
    """Decode a message ledger produced by ``serialize_messages``.

    Returns plain dicts; :class:`Negotiation` validation turns them back
    into :class:`Message` instances.
    """
    result: list[dict[str, Any]] = json.loads(json_str)
    return result
