"""Domain types, models, and errors for the negotiation core."""

from marketplace.domain.errors import (
    AuthorizationError,
    InvalidStateError,
    MarketplaceError,
    NegotiationBusyError,
    NotFoundError,
    ValidationError,
)
from marketplace.domain.models import (
    ContactCard,
    Message,
    Negotiation,
    NegotiationView,
    Product,
    UserProfile,
)
from marketplace.domain.money import require_positive, to_money
from marketplace.domain.types import NegotiationStatus, ProductStatus, UserRole

__all__ = [
    "AuthorizationError",
    "ContactCard",
    "InvalidStateError",
    "MarketplaceError",
    "Message",
    "Negotiation",
    "NegotiationBusyError",
    "NegotiationStatus",
    "NegotiationView",
    "NotFoundError",
    "Product",
    "ProductStatus",
    "UserProfile",
    "UserRole",
    "ValidationError",
    "require_positive",
    "to_money",
]
