"""Artifact store backends for plugin archives and thumbnails."""

from marketplace.storage.base import StorageBackend, StorageLocation
from marketplace.storage.local import LocalStorageBackend
from marketplace.storage.manager import StorageManager

__all__ = [
    "LocalStorageBackend",
    "StorageBackend",
    "StorageLocation",
    "StorageManager",
]
