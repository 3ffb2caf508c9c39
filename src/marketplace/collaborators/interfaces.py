"""Narrow interfaces to the services the negotiation core depends on."""

from __future__ import annotations

from typing import Protocol

from marketplace.domain.models import Product, UserProfile


class IdentityProvider(Protocol):
    """Resolves authenticated user identities.  Trusted as given."""

    def get_user(self, user_id: str) -> UserProfile | None:
        """Return the profile for *user_id*, or None if unknown."""
        ...


class ProductDirectory(Protocol):
    """Read-only access to catalog listings."""

    def get_product(self, product_id: str) -> Product | None:
        """Return the listing for *product_id*, or None if unknown."""
        ...
