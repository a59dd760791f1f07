"""Tests for storage backends."""

from pathlib import Path

import pytest

from marketplace.config import Settings
from marketplace.exceptions import StorageError
from marketplace.storage.base import calculate_checksum
from marketplace.storage.local import LocalStorageBackend
from marketplace.storage.manager import StorageManager


class TestCalculateChecksum:
    """Tests for the SHA256 file helper."""

    def test_calculate_checksum_empty_file(self, tmp_path: Path) -> None:
        test_file = tmp_path / "empty.txt"
        test_file.write_text("")

        checksum = calculate_checksum(test_file)

        # SHA256 of empty string
        assert checksum == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_calculate_checksum_binary(self, tmp_path: Path) -> None:
        test_file = tmp_path / "binary.bin"
        test_file.write_bytes(bytes(range(256)))

        checksum = calculate_checksum(test_file)

        assert len(checksum) == 64
        assert all(c in "0123456789abcdef" for c in checksum)


class TestStorageManager:
    """Tests for StorageManager."""

    def test_local_backend_selected_by_default(self, test_settings: Settings) -> None:
        manager = StorageManager(test_settings)

        assert isinstance(manager.backend, LocalStorageBackend)
        assert manager.health_check() == {"name": "local", "healthy": True}


class TestLocalStorageBackend:
    """Tests for the local filesystem backend."""

    @pytest.fixture
    def backend(self, tmp_path: Path) -> LocalStorageBackend:
        return LocalStorageBackend(tmp_path / "store")

    @pytest.fixture
    def source(self, tmp_path: Path) -> Path:
        path = tmp_path / "source.jar"
        path.write_bytes(b"jar bytes" * 1000)
        return path

    @pytest.mark.asyncio
    async def test_upload_records_checksum_and_size(
        self, backend: LocalStorageBackend, source: Path
    ) -> None:
        location = await backend.upload(source, "plugins/a.jar")

        assert location.backend == "local"
        assert location.path == "plugins/a.jar"
        assert location.size_bytes == source.stat().st_size
        assert location.checksum_sha256 == calculate_checksum(source)
        assert await backend.exists("plugins/a.jar")

    @pytest.mark.asyncio
    async def test_stream_returns_file_contents(
        self, backend: LocalStorageBackend, source: Path
    ) -> None:
        await backend.upload(source, "plugins/a.jar")

        chunks = [chunk async for chunk in backend.stream("plugins/a.jar")]

        assert b"".join(chunks) == source.read_bytes()

    @pytest.mark.asyncio
    async def test_download_copies_file(
        self, backend: LocalStorageBackend, source: Path, tmp_path: Path
    ) -> None:
        await backend.upload(source, "plugins/a.jar")
        target = tmp_path / "copy.jar"

        assert await backend.download("plugins/a.jar", target)
        assert target.read_bytes() == source.read_bytes()
        assert not await backend.download("plugins/missing.jar", tmp_path / "x")

    @pytest.mark.asyncio
    async def test_delete(self, backend: LocalStorageBackend, source: Path) -> None:
        await backend.upload(source, "thumbnails/t.png")

        assert await backend.delete("thumbnails/t.png")
        assert not await backend.exists("thumbnails/t.png")
        assert not await backend.delete("thumbnails/t.png")

    @pytest.mark.asyncio
    async def test_rejects_paths_outside_root(
        self, backend: LocalStorageBackend, source: Path
    ) -> None:
        with pytest.raises(StorageError):
            await backend.upload(source, "../escape.jar")
        with pytest.raises(StorageError):
            await backend.exists("../../etc/passwd")
