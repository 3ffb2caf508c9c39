"""Negotiation persistence package.

Provides SQLite-backed storage for negotiation snapshots and serialization
helpers for domain objects.
"""

from marketplace.state.schema import init_negotiation_table
from marketplace.state.serializers import (
    deserialize_messages,
    deserialize_negotiation,
    serialize_messages,
    serialize_negotiation,
)
from marketplace.state.store import NegotiationStore

__all__ = [
    "NegotiationStore",
    "deserialize_messages",
    "deserialize_negotiation",
    "init_negotiation_table",
    "serialize_messages",
    "serialize_negotiation",
]
