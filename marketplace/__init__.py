"""Plugin Marketplace - purchase-gated plugin distribution backend."""

__version__ = "0.1.0"
