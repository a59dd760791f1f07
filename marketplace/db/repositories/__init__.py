"""Database repositories for the plugin marketplace."""

from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.db.repositories.user_repo import UserRepository

__all__ = ["PluginRepository", "PurchaseRepository", "UserRepository"]
