"""Abstract base class for artifact store backends."""

import hashlib
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator

from marketplace.models.plugin import utcnow

CHUNK_SIZE = 8192


@dataclass
class StorageLocation:
    """Location of a stored file.

    Attributes:
        backend: Storage backend name (e.g., "local").
        path: Path within the store.
        checksum_sha256: SHA256 checksum of the file.
        size_bytes: File size in bytes.
        uploaded_at: Upload timestamp.
    """

    backend: str
    path: str
    checksum_sha256: str
    size_bytes: int
    uploaded_at: datetime = field(default_factory=utcnow)


def calculate_checksum(path: Path) -> str:
    """Calculate SHA256 checksum of a file.

    Args:
        path: Path to the file.

    Returns:
        Hex-encoded SHA256 checksum.
    """
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            sha256.update(chunk)
    return sha256.hexdigest()


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    All storage implementations must inherit from this class
    and implement the abstract methods.

    Attributes:
        name: Unique name for this storage backend.
    """

    name: str = "base"

    @abstractmethod
    async def upload(
        self,
        local_path: Path,
        remote_path: str,
    ) -> StorageLocation:
        """Upload a file to storage.

        Args:
            local_path: Path to the local file.
            remote_path: Destination path in storage.

        Returns:
            StorageLocation with upload details.

        Raises:
            StorageError: If upload fails.
        """
        ...

    @abstractmethod
    async def download(
        self,
        remote_path: str,
        local_path: Path,
    ) -> bool:
        """Download a file from storage.

        Args:
            remote_path: Path in storage.
            local_path: Destination local path.

        Returns:
            True if successful, False otherwise.
        """
        ...

    @abstractmethod
    async def exists(self, remote_path: str) -> bool:
        """Check if a file exists in storage.

        Args:
            remote_path: Path in storage.

        Returns:
            True if file exists, False otherwise.
        """
        ...

    @abstractmethod
    async def delete(self, remote_path: str) -> bool:
        """Delete a file from storage.

        Args:
            remote_path: Path in storage.

        Returns:
            True if deleted, False if not found.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Check backend connectivity."""
        ...

    async def stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """Stream file contents.

        Default implementation downloads to temp file and streams.
        Override for more efficient streaming.

        Args:
            remote_path: Path in storage.

        Yields:
            File content chunks.
        """
        with tempfile.NamedTemporaryFile(delete=False) as tmp:
            tmp_path = Path(tmp.name)

        try:
            if await self.download(remote_path, tmp_path):
                with open(tmp_path, "rb") as f:
                    while chunk := f.read(CHUNK_SIZE):
                        yield chunk
        finally:
            tmp_path.unlink(missing_ok=True)
