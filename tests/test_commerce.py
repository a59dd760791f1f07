"""Tests for the purchase ledger."""

import re

import pytest

from marketplace.exceptions import ConflictError, PluginNotFoundError
from marketplace.models.plugin import PluginChanges
from marketplace.models.purchase import Purchase
from marketplace.services.authoring_service import AuthoringService


class TestPurchase:
    @pytest.mark.asyncio
    async def test_records_purchase_at_current_price(
        self, commerce_service, create_plugin, author, buyer
    ) -> None:
        plugin = await create_plugin(author, price=7.5)

        purchase = await commerce_service.purchase(buyer.id, plugin.id)

        assert purchase.user_id == buyer.id
        assert purchase.plugin_id == plugin.id
        assert purchase.price == 7.5
        assert re.fullmatch(r"[0-9a-f]{32}", purchase.transaction_id)
        assert await commerce_service.check_purchased(buyer.id, plugin.id)

    @pytest.mark.asyncio
    async def test_price_is_frozen_at_purchase_time(
        self,
        commerce_service,
        authoring_service: AuthoringService,
        create_plugin,
        author,
        buyer,
    ) -> None:
        plugin = await create_plugin(author, price=10)
        await commerce_service.purchase(buyer.id, plugin.id)

        await authoring_service.update_plugin(author.id, plugin.id, PluginChanges(price=20))

        (detail,) = await commerce_service.list_my_purchases(buyer.id)
        assert detail.price == 10
        assert detail.plugin.price == 20

    @pytest.mark.asyncio
    async def test_author_cannot_buy_own_plugin(
        self, commerce_service, create_plugin, author
    ) -> None:
        plugin = await create_plugin(author)

        with pytest.raises(ConflictError) as exc_info:
            await commerce_service.purchase(author.id, plugin.id)
        assert exc_info.value.message == "You cannot purchase your own plugin"

    @pytest.mark.asyncio
    async def test_second_purchase_conflicts_and_keeps_one_record(
        self, commerce_service, purchase_repo, create_plugin, author, buyer
    ) -> None:
        plugin = await create_plugin(author)
        await commerce_service.purchase(buyer.id, plugin.id)

        with pytest.raises(ConflictError) as exc_info:
            await commerce_service.purchase(buyer.id, plugin.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "You have already purchased this plugin"
        assert len(await purchase_repo.list_for_plugin(buyer.id, plugin.id)) == 1

    @pytest.mark.asyncio
    async def test_storage_uniqueness_closes_racing_duplicates(
        self, purchase_repo, create_plugin, author, buyer
    ) -> None:
        plugin = await create_plugin(author)
        await purchase_repo.create(
            Purchase(id="", user_id=buyer.id, plugin_id=plugin.id, price=1, transaction_id="a" * 32)
        )

        with pytest.raises(ConflictError):
            await purchase_repo.create(
                Purchase(
                    id="", user_id=buyer.id, plugin_id=plugin.id, price=1, transaction_id="b" * 32
                )
            )
        assert len(await purchase_repo.list_by_user(buyer.id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_plugin(self, commerce_service, buyer) -> None:
        with pytest.raises(PluginNotFoundError):
            await commerce_service.purchase(buyer.id, "missing")


@pytest.mark.asyncio
async def test_check_purchased_never_raises(commerce_service, buyer) -> None:
    assert await commerce_service.check_purchased(buyer.id, "missing") is False


@pytest.mark.asyncio
async def test_list_my_purchases_newest_first_with_author(
    commerce_service, create_plugin, author, buyer
) -> None:
    first = await create_plugin(author, name="first")
    second = await create_plugin(author, name="second")
    await commerce_service.purchase(buyer.id, first.id)
    await commerce_service.purchase(buyer.id, second.id)

    details = await commerce_service.list_my_purchases(buyer.id)

    assert [d.plugin.name for d in details] == ["second", "first"]
    assert all(d.plugin.author_name == "author" for d in details)
    assert await commerce_service.list_my_purchases(author.id) == []
