"""Purchase ledger data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from marketplace.models.plugin import PluginSummary, utcnow


@dataclass
class Purchase:
    """Ledger entry granting a user access to a plugin.

    Attributes:
        id: Unique purchase ID.
        user_id: Buyer's user ID.
        plugin_id: Purchased plugin ID.
        price: Plugin price at the time of purchase.
        transaction_id: Unique 32-character hex transaction token.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    user_id: str
    plugin_id: str
    price: float
    transaction_id: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# Pydantic Models for API


class PurchaseCreate(BaseModel):
    """Request model for recording a purchase."""

    plugin_id: str


class PurchaseSummary(BaseModel):
    """Purchase record exposed by the API."""

    id: str
    user_id: str
    plugin_id: str
    price: float
    transaction_id: str
    created_at: datetime

    @classmethod
    def from_purchase(cls, purchase: Purchase) -> "PurchaseSummary":
        return cls(
            id=purchase.id,
            user_id=purchase.user_id,
            plugin_id=purchase.plugin_id,
            price=purchase.price,
            transaction_id=purchase.transaction_id,
            created_at=purchase.created_at,
        )


class PurchaseDetail(PurchaseSummary):
    """Purchase with the purchased plugin and its author's name.

    Attributes:
        plugin: Plugin summary, ``None`` if the plugin no longer exists.
    """

    plugin: Optional[PluginSummary] = None


class PurchaseCheckResponse(BaseModel):
    """Response for a purchase status check."""

    purchased: bool
