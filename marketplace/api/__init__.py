"""HTTP API of the plugin marketplace."""

from marketplace.api.router import create_router

__all__ = ["create_router"]
