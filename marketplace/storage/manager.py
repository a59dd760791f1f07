"""Storage manager for the configured artifact backend."""

import logging
from pathlib import Path
from typing import AsyncIterator, Optional

from marketplace.config import Settings
from marketplace.storage.base import StorageBackend, StorageLocation

logger = logging.getLogger(__name__)


def create_backend(config: Settings) -> StorageBackend:
    """Build the storage backend selected by the settings.

    Args:
        config: Application settings.

    Returns:
        Storage backend instance.
    """
    if config.storage_backend == "minio":
        from marketplace.storage.minio_backend import MinioBackend

        return MinioBackend(
            endpoint=config.minio_endpoint,
            access_key=config.minio_access_key,
            secret_key=config.minio_secret_key,
            bucket=config.minio_bucket,
            secure=config.minio_secure,
        )

    from marketplace.storage.local import LocalStorageBackend

    return LocalStorageBackend(config.upload_dir)


class StorageManager:
    """Front for the artifact store used by the services.

    Attributes:
        backend: Active storage backend.
    """

    def __init__(
        self,
        config: Settings,
        backend: Optional[StorageBackend] = None,
    ) -> None:
        """Initialize the storage manager.

        Args:
            config: Application settings.
            backend: Explicit backend, overrides the configured one.
        """
        self.backend = backend or create_backend(config)
        logger.info(f"Storage backend: {self.backend.name}")

    def health_check(self) -> dict:
        """Check storage connectivity.

        Returns:
            Dict with backend name and health status.
        """
        result = {"name": self.backend.name, "healthy": False}
        try:
            result["healthy"] = self.backend.health_check()
        except Exception as e:
            logger.error(f"Storage health check failed: {e}")
            result["error"] = str(e)
        return result

    async def upload(self, local_path: Path, remote_path: str) -> StorageLocation:
        """Upload a file to storage.

        Args:
            local_path: Path to the local file.
            remote_path: Destination path in storage.

        Returns:
            Storage location of the stored file.
        """
        return await self.backend.upload(local_path, remote_path)

    async def download(self, remote_path: str, local_path: Path) -> bool:
        """Download a file from storage.

        Args:
            remote_path: Path in storage.
            local_path: Destination local path.

        Returns:
            True if successful, False otherwise.
        """
        return await self.backend.download(remote_path, local_path)

    async def exists(self, remote_path: str) -> bool:
        return await self.backend.exists(remote_path)

    async def delete(self, remote_path: str) -> bool:
        return await self.backend.delete(remote_path)

    def stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """Stream file contents from storage.

        Args:
            remote_path: Path in storage.

        Returns:
            Async iterator over content chunks.
        """
        return self.backend.stream(remote_path)
