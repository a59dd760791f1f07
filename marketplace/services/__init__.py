"""Business logic services."""

from marketplace.services.account_service import AccountService
from marketplace.services.authoring_service import AuthoringService
from marketplace.services.catalog_service import CatalogService
from marketplace.services.commerce_service import CommerceService
from marketplace.services.delivery_service import DeliveryService, PluginDownload

__all__ = [
    "AccountService",
    "AuthoringService",
    "CatalogService",
    "CommerceService",
    "DeliveryService",
    "PluginDownload",
]
