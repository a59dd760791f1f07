"""Tests for purchase-gated reviews and downloads."""

import asyncio

import pytest

from marketplace.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PluginNotFoundError,
    ValidationError,
)
from marketplace.models.plugin import VersionDraft


async def _read(download) -> bytes:
    return b"".join([chunk async for chunk in download.chunks])


class TestAddReview:
    @pytest.mark.asyncio
    async def test_average_rating_is_mean_of_ratings(
        self, delivery_service, commerce_service, plugin_repo, create_plugin,
        author, buyer, stranger,
    ) -> None:
        plugin = await create_plugin(author)
        await commerce_service.purchase(buyer.id, plugin.id)
        await commerce_service.purchase(stranger.id, plugin.id)

        await delivery_service.add_review(buyer.id, plugin.id, 5, "Great")
        assert (await plugin_repo.get_by_id(plugin.id)).average_rating == 5

        await delivery_service.add_review(stranger.id, plugin.id, 2, "Meh")
        reloaded = await plugin_repo.get_by_id(plugin.id)
        assert reloaded.average_rating == pytest.approx(3.5)
        assert [r.user_id for r in reloaded.reviews] == [buyer.id, stranger.id]
        assert [r.position for r in reloaded.reviews] == [0, 1]

    @pytest.mark.asyncio
    async def test_concurrent_readers_never_see_stale_rating(
        self, delivery_service, commerce_service, plugin_repo, create_plugin, author, buyer
    ) -> None:
        plugin = await create_plugin(author)
        await commerce_service.purchase(buyer.id, plugin.id)
        observations = []

        async def reader() -> None:
            for _ in range(20):
                loaded = await plugin_repo.get_by_id(plugin.id)
                observations.append(
                    (loaded.average_rating, [r.rating for r in loaded.reviews])
                )

        await asyncio.gather(
            reader(),
            delivery_service.add_review(buyer.id, plugin.id, 5, "ok"),
            reader(),
        )

        inconsistent = [
            (rating, ratings)
            for rating, ratings in observations
            if rating != (sum(ratings) / len(ratings) if ratings else 0)
        ]
        assert inconsistent == []
        assert len(observations) == 40

    @pytest.mark.asyncio
    async def test_author_may_review_own_plugin(
        self, delivery_service, plugin_repo, create_plugin, author
    ) -> None:
        plugin = await create_plugin(author)

        review = await delivery_service.add_review(author.id, plugin.id, 4, "My own")

        assert review.rating == 4
        assert (await plugin_repo.get_by_id(plugin.id)).average_rating == 4

    @pytest.mark.asyncio
    async def test_non_buyer_is_forbidden(
        self, delivery_service, create_plugin, author, stranger
    ) -> None:
        plugin = await create_plugin(author)

        with pytest.raises(AuthorizationError) as exc_info:
            await delivery_service.add_review(stranger.id, plugin.id, 5, "Nice")
        assert exc_info.value.message == "You must purchase this plugin before leaving a review"

    @pytest.mark.asyncio
    async def test_second_review_conflicts(
        self, delivery_service, commerce_service, plugin_repo, create_plugin, author, buyer
    ) -> None:
        plugin = await create_plugin(author)
        await commerce_service.purchase(buyer.id, plugin.id)
        await delivery_service.add_review(buyer.id, plugin.id, 5, "Great")

        with pytest.raises(ConflictError):
            await delivery_service.add_review(buyer.id, plugin.id, 1, "Changed my mind")

        reloaded = await plugin_repo.get_by_id(plugin.id)
        assert len(reloaded.reviews) == 1
        assert reloaded.average_rating == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rating,comment",
        [(0, "ok"), (6, "ok"), (True, "ok"), (3, ""), (3, "   ")],
    )
    async def test_invalid_review_rejected(
        self, delivery_service, create_plugin, author, rating, comment
    ) -> None:
        plugin = await create_plugin(author)
        with pytest.raises(ValidationError):
            await delivery_service.add_review(author.id, plugin.id, rating, comment)

    @pytest.mark.asyncio
    async def test_unknown_plugin(self, delivery_service, buyer) -> None:
        with pytest.raises(PluginNotFoundError):
            await delivery_service.add_review(buyer.id, "missing", 5, "x")


class TestDownload:
    @pytest.mark.asyncio
    async def test_buyer_downloads_latest_version_and_counters_increment(
        self, delivery_service, commerce_service, authoring_service, plugin_repo,
        create_plugin, author, buyer, jar_upload,
    ) -> None:
        plugin = await create_plugin(author, name="Essentials", version="1.0")
        await authoring_service.add_version(
            author.id,
            plugin.id,
            VersionDraft(version_number="1.1", minecraft_version="1.20"),
            jar_upload(content=b"version 1.1 bytes"),
        )
        await commerce_service.purchase(buyer.id, plugin.id)

        download = await delivery_service.download(buyer.id, plugin.id)

        assert download.filename == "Essentials-v1.1.jar"
        assert download.media_type == "application/java-archive"
        assert await _read(download) == b"version 1.1 bytes"

        reloaded = await plugin_repo.get_by_id(plugin.id)
        assert reloaded.download_count == 1
        assert [v.download_count for v in reloaded.versions] == [0, 1]

    @pytest.mark.asyncio
    async def test_each_download_counts_once(
        self, delivery_service, plugin_repo, create_plugin, author
    ) -> None:
        plugin = await create_plugin(author)

        for _ in range(3):
            download = await delivery_service.download(author.id, plugin.id)
            await _read(download)

        reloaded = await plugin_repo.get_by_id(plugin.id)
        assert reloaded.download_count == 3
        assert reloaded.latest_version.download_count == 3

    @pytest.mark.asyncio
    async def test_non_buyer_is_forbidden(
        self, delivery_service, plugin_repo, create_plugin, author, stranger
    ) -> None:
        plugin = await create_plugin(author)

        with pytest.raises(AuthorizationError) as exc_info:
            await delivery_service.download(stranger.id, plugin.id)

        assert exc_info.value.message == "You must purchase this plugin before downloading"
        assert (await plugin_repo.get_by_id(plugin.id)).download_count == 0

    @pytest.mark.asyncio
    async def test_missing_archive_is_not_found(
        self, delivery_service, plugin_repo, storage, create_plugin, author
    ) -> None:
        plugin = await create_plugin(author)
        await storage.delete(plugin.latest_version.file_path)

        with pytest.raises(NotFoundError) as exc_info:
            await delivery_service.download(author.id, plugin.id)

        assert exc_info.value.message == "Plugin file not found"
        assert (await plugin_repo.get_by_id(plugin.id)).download_count == 0

    @pytest.mark.asyncio
    async def test_unknown_plugin(self, delivery_service, buyer) -> None:
        with pytest.raises(PluginNotFoundError):
            await delivery_service.download(buyer.id, "missing")

    @pytest.mark.asyncio
    async def test_plugin_without_versions_is_not_found(self) -> None:
        from unittest.mock import AsyncMock, MagicMock

        from marketplace.models.plugin import Plugin
        from marketplace.services.delivery_service import DeliveryService

        mock_repo = MagicMock()
        mock_purchase_repo = MagicMock()
        mock_storage = MagicMock()

        # Plugin owned by the caller, with an empty version history
        plugin = Plugin(id="p1", author_id="owner_123", name="Empty", description="d", category="c")
        mock_repo.get_by_id = AsyncMock(return_value=plugin)
        mock_repo.increment_downloads = AsyncMock()

        service = DeliveryService(mock_repo, mock_purchase_repo, mock_storage)

        with pytest.raises(NotFoundError) as exc_info:
            await service.download("owner_123", "p1")

        assert exc_info.value.message == "No version available for download"
        mock_repo.increment_downloads.assert_not_called()
