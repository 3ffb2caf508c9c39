"""HTTP API for negotiations."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import router

__all__ = ["register_error_handlers", "router"]
