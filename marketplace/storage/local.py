"""Local filesystem storage backend."""

import logging
import shutil
from pathlib import Path
from typing import AsyncIterator

from marketplace.exceptions import StorageError
from marketplace.storage.base import (
    CHUNK_SIZE,
    StorageBackend,
    StorageLocation,
    calculate_checksum,
)

logger = logging.getLogger(__name__)


class LocalStorageBackend(StorageBackend):
    """Stores files below a root directory on the local disk.

    Attributes:
        name: Backend name identifier.
        root: Root directory of the store.
    """

    name: str = "local"

    def __init__(self, root: str | Path) -> None:
        """Initialize the backend.

        Args:
            root: Root directory, created if missing.
        """
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, remote_path: str, operation: str) -> Path:
        """Map a store path to a file below the root.

        Raises:
            StorageError: If the path escapes the root directory.
        """
        target = (self.root / remote_path).resolve()
        if self.root not in target.parents:
            raise StorageError(f"Invalid path '{remote_path}'", operation)
        return target

    async def upload(
        self,
        local_path: Path,
        remote_path: str,
    ) -> StorageLocation:
        target = self._resolve(remote_path, "upload")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, target)
        except OSError as e:
            logger.error(f"Upload failed: {e}")
            raise StorageError(str(e), "upload")

        logger.info(f"Stored {local_path} at {remote_path}")
        return StorageLocation(
            backend=self.name,
            path=remote_path,
            checksum_sha256=calculate_checksum(target),
            size_bytes=target.stat().st_size,
        )

    async def download(
        self,
        remote_path: str,
        local_path: Path,
    ) -> bool:
        source = self._resolve(remote_path, "download")
        if not source.is_file():
            return False
        shutil.copyfile(source, local_path)
        return True

    async def exists(self, remote_path: str) -> bool:
        return self._resolve(remote_path, "exists").is_file()

    async def delete(self, remote_path: str) -> bool:
        target = self._resolve(remote_path, "delete")
        if not target.is_file():
            return False
        target.unlink()
        logger.info(f"Deleted {remote_path}")
        return True

    def health_check(self) -> bool:
        return self.root.is_dir()

    async def stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """Stream a file straight from disk.

        Args:
            remote_path: Path in storage.

        Yields:
            File content chunks.
        """
        source = self._resolve(remote_path, "stream")
        with open(source, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk
