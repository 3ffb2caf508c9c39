"""Resilience infrastructure for storage writes."""

from marketplace.resilience.retry import resilient_write

__all__ = ["resilient_write"]
