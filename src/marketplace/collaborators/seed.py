"""Load users and products for the in-memory collaborators from YAML.

Expected layout::

    users:
      - id: b1
        name: Alice Buyer
        role: buyer
        phone_number: "+1987654321"
    products:
      - id: p1
        name: iPhone 12 Pro
        seller_id: s1
        seller_price: "700"
        seller_phone: "+1234567890"
        status: verified
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field

from marketplace.collaborators.memory import InMemoryIdentityProvider, InMemoryProductDirectory
from marketplace.domain.models import Product, UserProfile

logger = structlog.get_logger()


class SeedData(BaseModel):
    """Root of the seed file, validated by Pydantic."""

    users: list[UserProfile] = Field(default_factory=list)
    products: list[Product] = Field(default_factory=list)


def load_seed(path: Path) -> SeedData:
    """Parse and validate the seed file at *path*.

    A missing file yields empty seed data.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a record does not match its model.
    """
    if not path.exists():
        logger.warning("seed_file_missing", path=str(path))
        return SeedData()

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    seed = SeedData.model_validate(raw)
    logger.info("seed_loaded", path=str(path), users=len(seed.users), products=len(seed.products))
    return seed


def build_collaborators(
    seed: SeedData,
) -> tuple[InMemoryIdentityProvider, InMemoryProductDirectory]:
    """Create the in-memory identity provider and product directory from *seed*."""
    return InMemoryIdentityProvider(seed.users), InMemoryProductDirectory(seed.products)
