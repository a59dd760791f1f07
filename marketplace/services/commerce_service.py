"""Commerce service: recording and querying purchases."""

import logging
import secrets

from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.exceptions import ConflictError, PluginNotFoundError
from marketplace.models.plugin import PluginSummary
from marketplace.models.purchase import Purchase, PurchaseDetail, PurchaseSummary

logger = logging.getLogger(__name__)


def generate_transaction_id() -> str:
    """Generate a 32-character hex transaction id."""
    return secrets.token_hex(16)


class CommerceService:
    """Service for the purchase ledger.

    A purchase is a ledger entry only. No payment is processed.

    Attributes:
        plugin_repo: Plugin repository.
        repo: Purchase repository.
    """

    def __init__(
        self,
        plugin_repo: PluginRepository,
        repo: PurchaseRepository,
    ) -> None:
        self.plugin_repo = plugin_repo
        self.repo = repo

    async def purchase(self, caller_id: str, plugin_id: str) -> Purchase:
        """Record a purchase of a plugin at its current price.

        Args:
            caller_id: Buyer's user ID.
            plugin_id: Plugin ID.

        Returns:
            Recorded purchase.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
            ConflictError: If the caller is the author or already owns it.
        """
        plugin = await self.plugin_repo.get_by_id(plugin_id)
        if not plugin:
            raise PluginNotFoundError(plugin_id)

        if plugin.is_author(caller_id):
            raise ConflictError("You cannot purchase your own plugin")

        if await self.repo.get(caller_id, plugin_id):
            raise ConflictError("You have already purchased this plugin")

        purchase = Purchase(
            id="",
            user_id=caller_id,
            plugin_id=plugin_id,
            price=plugin.price,
            transaction_id=generate_transaction_id(),
        )
        return await self.repo.create(purchase)

    async def check_purchased(self, caller_id: str, plugin_id: str) -> bool:
        """Check whether the caller owns a plugin."""
        return await self.repo.get(caller_id, plugin_id) is not None

    async def list_my_purchases(self, caller_id: str) -> list[PurchaseDetail]:
        """List the caller's purchases with their plugins, newest first.

        Args:
            caller_id: Buyer's user ID.

        Returns:
            Purchases, each with the plugin summary and author name.
        """
        details = []
        for purchase in await self.repo.list_by_user(caller_id):
            plugin = await self.plugin_repo.get_by_id(purchase.plugin_id)
            details.append(
                PurchaseDetail(
                    **PurchaseSummary.from_purchase(purchase).model_dump(),
                    plugin=PluginSummary.from_plugin(plugin) if plugin else None,
                )
            )
        return details
