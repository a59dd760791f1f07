"""Access-gated delivery: reviews and downloads for owners of a plugin."""

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PluginNotFoundError,
    ValidationError,
)
from marketplace.models.plugin import Plugin, Review
from marketplace.services.uploads import JAR_EXTENSION, JAR_MIME_TYPE, file_extension
from marketplace.storage.manager import StorageManager

logger = logging.getLogger(__name__)


@dataclass
class PluginDownload:
    """A plugin archive ready to be streamed.

    Attributes:
        filename: Suggested file name for the client.
        media_type: Content type of the archive.
        size_bytes: Archive size, if known.
        chunks: Archive content.
    """

    filename: str
    media_type: str
    size_bytes: int | None
    chunks: AsyncIterator[bytes]


class DeliveryService:
    """Service for operations reserved to buyers and the author.

    Attributes:
        repo: Plugin repository.
        purchase_repo: Purchase repository.
        storage: Storage manager.
    """

    def __init__(
        self,
        repo: PluginRepository,
        purchase_repo: PurchaseRepository,
        storage: StorageManager,
    ) -> None:
        self.repo = repo
        self.purchase_repo = purchase_repo
        self.storage = storage

    async def _get_plugin(self, plugin_id: str) -> Plugin:
        plugin = await self.repo.get_by_id(plugin_id)
        if not plugin:
            raise PluginNotFoundError(plugin_id)
        return plugin

    async def has_access(self, caller_id: str, plugin: Plugin) -> bool:
        """Check whether the caller bought the plugin or wrote it."""
        if plugin.is_author(caller_id):
            return True
        return await self.purchase_repo.get(caller_id, plugin.id) is not None

    async def add_review(
        self,
        caller_id: str,
        plugin_id: str,
        rating: int,
        comment: str,
    ) -> Review:
        """Review a plugin the caller owns.

        Args:
            caller_id: Reviewer's user ID.
            plugin_id: Plugin ID.
            rating: Integer rating from 1 to 5.
            comment: Review text.

        Returns:
            Added review.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
            AuthorizationError: If the caller has no access.
            ConflictError: If the caller already reviewed the plugin.
            ValidationError: If the rating or comment is invalid.
        """
        plugin = await self._get_plugin(plugin_id)

        if not await self.has_access(caller_id, plugin):
            raise AuthorizationError("You must purchase this plugin before leaving a review")

        if any(review.user_id == caller_id for review in plugin.reviews):
            raise ConflictError("You have already reviewed this plugin")

        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5", "rating")
        if not comment or not comment.strip():
            raise ValidationError("Comment is required", "comment")

        review = Review(user_id=caller_id, rating=rating, comment=comment.strip())
        return await self.repo.add_review(plugin_id, review)

    async def download(self, caller_id: str, plugin_id: str) -> PluginDownload:
        """Open the latest version of a plugin for download.

        Counters are incremented before streaming starts.

        Args:
            caller_id: Downloading user's ID.
            plugin_id: Plugin ID.

        Returns:
            Download descriptor with the archive stream.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
            AuthorizationError: If the caller has no access.
            NotFoundError: If there is no version or its file is missing.
        """
        plugin = await self._get_plugin(plugin_id)

        if not await self.has_access(caller_id, plugin):
            raise AuthorizationError("You must purchase this plugin before downloading")

        latest = plugin.latest_version
        if latest is None:
            raise NotFoundError("No version available for download")

        if not await self.storage.exists(latest.file_path):
            logger.error(f"Missing archive for plugin {plugin_id}: {latest.file_path}")
            raise NotFoundError("Plugin file not found")

        await self.repo.increment_downloads(plugin_id, latest.position)

        extension = file_extension(latest.file_path) or JAR_EXTENSION
        logger.info(
            f"Download of {plugin_id} v{latest.version_number} by {caller_id}"
        )
        return PluginDownload(
            filename=f"{plugin.name}-v{latest.version_number}{extension}",
            media_type=JAR_MIME_TYPE if extension == JAR_EXTENSION else "application/octet-stream",
            size_bytes=latest.size_bytes,
            chunks=self.storage.stream(latest.file_path),
        )
