"""External collaborators: identity provider and product directory."""

from marketplace.collaborators.interfaces import IdentityProvider, ProductDirectory
from marketplace.collaborators.memory import InMemoryIdentityProvider, InMemoryProductDirectory
from marketplace.collaborators.seed import SeedData, build_collaborators, load_seed

__all__ = [
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "InMemoryProductDirectory",
    "ProductDirectory",
    "SeedData",
    "build_collaborators",
    "load_seed",
]
