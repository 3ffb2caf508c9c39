"""In-memory identity provider and product directory."""

from __future__ import annotations

from collections.abc import Iterable

from marketplace.domain.models import Product, UserProfile


class InMemoryIdentityProvider:
    """Identity provider backed by a dict of :class:`UserProfile` records."""

    def __init__(self, users: Iterable[UserProfile] = ()) -> None:
        self._users: dict[str, UserProfile] = {u.id: u for u in users}

    def add(self, user: UserProfile) -> None:
        self._users[user.id] = user

    def get_user(self, user_id: str) -> UserProfile | None:
        return self._users.get(user_id)

    def __len__(self) -> int:
        return len(self._users)


class InMemoryProductDirectory:
    """Product directory backed by a dict of :class:`Product` records."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[str, Product] = {p.id: p for p in products}

    def add(self, product: Product) -> None:
        self._products[product.id] = product

    def get_product(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def __len__(self) -> int:
        return len(self._products)
