"""Domain enumerations for the marketplace negotiation core."""

from enum import StrEnum


class UserRole(StrEnum):
    """Roles an authenticated marketplace user can hold."""

    BUYER = "buyer"
    SELLER = "seller"
    TECHNICIAN = "technician"


class NegotiationStatus(StrEnum):
    """States in the negotiation lifecycle."""

    ACTIVE = "active"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ProductStatus(StrEnum):
    """Listing states owned by the product catalog."""

    PENDING = "pending"
    VERIFIED = "verified"
    SOLD = "sold"
