"""Authoring service: creating, updating and versioning plugins."""

import json
import logging
import math
import uuid
from typing import Optional

from fastapi import UploadFile

from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.exceptions import (
    AuthorizationError,
    PluginNotFoundError,
    ValidationError,
)
from marketplace.models.plugin import (
    Plugin,
    PluginChanges,
    PluginDraft,
    PluginVersion,
    VersionDraft,
)
from marketplace.services.uploads import UploadKind, stage_upload
from marketplace.storage.base import StorageLocation
from marketplace.storage.manager import StorageManager

logger = logging.getLogger(__name__)

NOT_AUTHOR_MESSAGE = "You are not authorized to update this plugin"


def parse_features(raw: Optional[str]) -> list[str]:
    """Parse the JSON-encoded feature list of a form submission.

    Args:
        raw: JSON array of strings, or None/blank for no features.

    Returns:
        Feature list.

    Raises:
        ValidationError: If the value is not a JSON array of strings.
    """
    if raw is None or not raw.strip():
        return []
    try:
        features = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("Features must be a JSON array of strings", "features") from e
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        raise ValidationError("Features must be a JSON array of strings", "features")
    return features


def _required(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field)
    return value.strip()


def _supplied(value: Optional[str]) -> bool:
    return value is not None and bool(value.strip())


def _check_price(price: float) -> float:
    if not math.isfinite(price):
        raise ValidationError("Price must be a finite number", "price")
    if price < 0:
        raise ValidationError("Price must not be negative", "price")
    return float(price)


class AuthoringService:
    """Service for plugin authoring operations.

    Every stored blob is removed again when the operation that stored it
    fails.

    Attributes:
        repo: Plugin repository.
        storage: Storage manager.
        max_upload_bytes: Size cap per uploaded file.
        public_base_url: Base URL for thumbnail links.
    """

    def __init__(
        self,
        repo: PluginRepository,
        storage: StorageManager,
        max_upload_bytes: int,
        public_base_url: str = "",
    ) -> None:
        """Initialize the service.

        Args:
            repo: Plugin repository.
            storage: Storage manager.
            max_upload_bytes: Size cap per uploaded file.
            public_base_url: Base URL for thumbnail links.
        """
        self.repo = repo
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes
        self.public_base_url = public_base_url.rstrip("/")

    def thumbnail_url(self, filename: str) -> str:
        """Public URL of a stored thumbnail."""
        return f"{self.public_base_url}/uploads/thumbnails/{filename}"

    async def _store(
        self,
        file: UploadFile,
        kind: UploadKind,
        stored: list[str],
    ) -> tuple[StorageLocation, str]:
        """Validate an upload and push it to the store.

        The remote path is recorded in ``stored`` before the upload starts.

        Returns:
            Tuple of storage location and generated file name.
        """
        async with stage_upload(file, kind, self.max_upload_bytes) as staged:
            stored.append(staged.remote_path)
            location = await self.storage.upload(staged.path, staged.remote_path)
        return location, staged.filename

    async def _discard(self, stored: list[str]) -> None:
        for remote_path in stored:
            try:
                await self.storage.delete(remote_path)
            except Exception as e:
                logger.error(f"Failed to clean up {remote_path}: {e}")

    async def _get_owned(self, caller_id: str, plugin_id: str) -> Plugin:
        plugin = await self.repo.get_by_id(plugin_id)
        if not plugin:
            raise PluginNotFoundError(plugin_id)
        if not plugin.is_author(caller_id):
            raise AuthorizationError(NOT_AUTHOR_MESSAGE)
        return plugin

    async def create_plugin(
        self,
        caller_id: str,
        draft: PluginDraft,
        plugin_file: Optional[UploadFile],
        thumbnail_file: Optional[UploadFile],
    ) -> Plugin:
        """Create a plugin with its initial version.

        Args:
            caller_id: Authenticated user, becomes the author.
            draft: Submitted metadata.
            plugin_file: Plugin archive.
            thumbnail_file: Thumbnail image.

        Returns:
            Created plugin.

        Raises:
            ValidationError: If a file is missing or metadata is invalid.
            StorageError: If a file cannot be stored.
        """
        if plugin_file is None or thumbnail_file is None:
            raise ValidationError("Please upload both plugin file and thumbnail")

        name = _required(draft.name, "name")
        description = _required(draft.description, "description")
        category = _required(draft.category, "category")
        version_number = _required(draft.version, "version")
        minecraft_version = _required(draft.minecraft_version, "minecraft_version")
        price = _check_price(draft.price) if draft.price is not None else 0.0
        features = parse_features(draft.features)

        stored: list[str] = []
        try:
            archive, _ = await self._store(plugin_file, UploadKind.PLUGIN, stored)
            _, thumbnail_name = await self._store(thumbnail_file, UploadKind.THUMBNAIL, stored)

            plugin = Plugin(
                id=uuid.uuid4().hex,
                author_id=caller_id,
                name=name,
                description=description,
                category=category,
                price=price,
                features=features,
                requirements=draft.requirements.strip() if _supplied(draft.requirements) else None,
                thumbnail_url=self.thumbnail_url(thumbnail_name),
                versions=[
                    PluginVersion(
                        version_number=version_number,
                        file_path=archive.path,
                        minecraft_version=minecraft_version,
                        checksum_sha256=archive.checksum_sha256,
                        size_bytes=archive.size_bytes,
                    )
                ],
            )
            created = await self.repo.create(plugin)
        except Exception:
            await self._discard(stored)
            raise

        return await self.repo.get_by_id(created.id) or created

    async def update_plugin(
        self,
        caller_id: str,
        plugin_id: str,
        changes: PluginChanges,
        thumbnail_file: Optional[UploadFile] = None,
    ) -> Plugin:
        """Update plugin metadata and optionally replace its thumbnail.

        Blank text fields and a missing price leave the current values
        unchanged. A price of 0 is applied.

        Args:
            caller_id: Authenticated user.
            plugin_id: Plugin ID.
            changes: Submitted changes.
            thumbnail_file: New thumbnail image.

        Returns:
            Updated plugin.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
            AuthorizationError: If the caller is not the author.
            ValidationError: If a supplied value is invalid.
        """
        await self._get_owned(caller_id, plugin_id)

        data: dict = {}
        for field in ("name", "description", "category", "requirements"):
            value = getattr(changes, field)
            if _supplied(value):
                data[field] = value.strip()
        if changes.price is not None:
            data["price"] = _check_price(changes.price)
        if _supplied(changes.features):
            data["features"] = parse_features(changes.features)

        stored: list[str] = []
        try:
            if thumbnail_file is not None:
                _, thumbnail_name = await self._store(
                    thumbnail_file, UploadKind.THUMBNAIL, stored
                )
                data["thumbnail_url"] = self.thumbnail_url(thumbnail_name)
            updated = await self.repo.update(plugin_id, data)
        except Exception:
            await self._discard(stored)
            raise

        if updated is None:
            raise PluginNotFoundError(plugin_id)
        logger.info(f"Updated plugin {plugin_id}: {sorted(data)}")
        return updated

    async def add_version(
        self,
        caller_id: str,
        plugin_id: str,
        draft: VersionDraft,
        plugin_file: Optional[UploadFile],
    ) -> PluginVersion:
        """Append a new version to a plugin.

        Args:
            caller_id: Authenticated user.
            plugin_id: Plugin ID.
            draft: Version metadata.
            plugin_file: Plugin archive.

        Returns:
            Appended version.

        Raises:
            PluginNotFoundError: If the plugin does not exist.
            AuthorizationError: If the caller is not the author.
            ValidationError: If the file or metadata is missing.
        """
        await self._get_owned(caller_id, plugin_id)

        if plugin_file is None:
            raise ValidationError("Please upload a plugin file", UploadKind.PLUGIN.field_name)
        version_number = _required(draft.version_number, "version_number")
        minecraft_version = _required(draft.minecraft_version, "minecraft_version")

        stored: list[str] = []
        try:
            archive, _ = await self._store(plugin_file, UploadKind.PLUGIN, stored)
            version = PluginVersion(
                version_number=version_number,
                file_path=archive.path,
                minecraft_version=minecraft_version,
                changelog=draft.changelog,
                checksum_sha256=archive.checksum_sha256,
                size_bytes=archive.size_bytes,
            )
            return await self.repo.append_version(plugin_id, version)
        except Exception:
            await self._discard(stored)
            raise
