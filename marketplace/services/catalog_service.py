"""Catalog service for browsing plugins."""

import logging
from typing import Optional

from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.exceptions import PluginNotFoundError
from marketplace.models.plugin import Plugin, PluginFilters, PluginSummary, SortOrder
from marketplace.models.purchase import Purchase

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100


class CatalogService:
    """Service for read-only catalog queries.

    Attributes:
        repo: Plugin repository.
        purchase_repo: Purchase repository.
    """

    def __init__(
        self,
        repo: PluginRepository,
        purchase_repo: PurchaseRepository,
    ) -> None:
        self.repo = repo
        self.purchase_repo = purchase_repo

    async def list_plugins(
        self,
        filters: PluginFilters,
        sort: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[PluginSummary], int]:
        """List plugins matching the filters.

        Args:
            filters: Category, featured and search filters.
            sort: Sort order.
            page: 1-indexed page number.
            per_page: Page size.

        Returns:
            Tuple of (summaries on the page, total matching count).
        """
        page = max(page, 1)
        per_page = min(max(per_page, 1), MAX_PAGE_SIZE)

        plugins = await self.repo.list_plugins(filters, sort, page, per_page)
        total = await self.repo.count(filters)
        return [PluginSummary.from_plugin(p) for p in plugins], total

    async def get_plugin(
        self,
        plugin_id: str,
        viewer_id: Optional[str] = None,
    ) -> tuple[Plugin, Optional[list[Purchase]]]:
        """Get a plugin with the viewer's purchase records.

        Args:
            plugin_id: Plugin ID.
            viewer_id: Authenticated viewer, if any.

        Returns:
            Tuple of plugin and the viewer's purchases of it. The purchases
            are None for anonymous viewers.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
        """
        plugin = await self.repo.get_by_id(plugin_id)
        if not plugin:
            raise PluginNotFoundError(plugin_id)

        purchases = None
        if viewer_id:
            purchases = await self.purchase_repo.list_for_plugin(viewer_id, plugin_id)
        return plugin, purchases

    async def list_mine(self, caller_id: str) -> list[Plugin]:
        """List the caller's plugins, newest first."""
        return await self.repo.list_by_author(caller_id)
