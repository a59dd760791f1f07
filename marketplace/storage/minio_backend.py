"""MinIO storage backend."""

import logging
from pathlib import Path
from typing import AsyncIterator

from minio import Minio
from minio.error import S3Error

from marketplace.exceptions import StorageError
from marketplace.storage.base import (
    CHUNK_SIZE,
    StorageBackend,
    StorageLocation,
    calculate_checksum,
)

logger = logging.getLogger(__name__)


class MinioBackend(StorageBackend):
    """MinIO storage backend.

    Implements storage operations using MinIO S3-compatible storage.

    Attributes:
        name: Backend name identifier.
        client: MinIO client instance.
        bucket: Bucket name.
    """

    name: str = "minio"

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
    ) -> None:
        """Initialize the MinIO backend.

        Args:
            endpoint: MinIO server endpoint.
            access_key: Access key for authentication.
            secret_key: Secret key for authentication.
            bucket: Bucket name to use.
            secure: Use HTTPS connection.
        """
        self.client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )
        self.bucket = bucket
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        """Ensure the bucket exists, create if not."""
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info(f"Created bucket: {self.bucket}")
        except S3Error as e:
            logger.error(f"Failed to ensure bucket: {e}")
            raise StorageError(str(e), "bucket_check")

    async def upload(
        self,
        local_path: Path,
        remote_path: str,
    ) -> StorageLocation:
        try:
            checksum = calculate_checksum(local_path)
            size = local_path.stat().st_size

            self.client.fput_object(self.bucket, remote_path, str(local_path))

            logger.info(f"Uploaded {local_path} to {self.bucket}/{remote_path}")
            return StorageLocation(
                backend=self.name,
                path=remote_path,
                checksum_sha256=checksum,
                size_bytes=size,
            )
        except S3Error as e:
            logger.error(f"Upload failed: {e}")
            raise StorageError(str(e), "upload")

    async def download(
        self,
        remote_path: str,
        local_path: Path,
    ) -> bool:
        try:
            self.client.fget_object(self.bucket, remote_path, str(local_path))
            return True
        except S3Error as e:
            logger.error(f"Download failed: {e}")
            return False

    async def exists(self, remote_path: str) -> bool:
        try:
            self.client.stat_object(self.bucket, remote_path)
            return True
        except S3Error:
            return False

    async def delete(self, remote_path: str) -> bool:
        try:
            self.client.remove_object(self.bucket, remote_path)
            logger.info(f"Deleted {self.bucket}/{remote_path}")
            return True
        except S3Error as e:
            logger.error(f"Delete failed: {e}")
            return False

    def health_check(self) -> bool:
        try:
            return self.client.bucket_exists(self.bucket)
        except S3Error as e:
            logger.error(f"MinIO health check failed: {e}")
            return False

    async def stream(self, remote_path: str) -> AsyncIterator[bytes]:
        """Stream an object without staging it on disk.

        Args:
            remote_path: Path in storage.

        Yields:
            File content chunks.

        Raises:
            StorageError: If the object cannot be read.
        """
        try:
            response = self.client.get_object(self.bucket, remote_path)
        except S3Error as e:
            logger.error(f"Stream failed: {e}")
            raise StorageError(str(e), "stream")

        try:
            for chunk in response.stream(CHUNK_SIZE):
                yield chunk
        finally:
            response.close()
            response.release_conn()
