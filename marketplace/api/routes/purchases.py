"""Purchase ledger routes."""

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_commerce_service, get_current_user
from marketplace.models.purchase import (
    PurchaseCheckResponse,
    PurchaseCreate,
    PurchaseDetail,
    PurchaseSummary,
)
from marketplace.models.user import User
from marketplace.services.commerce_service import CommerceService

router = APIRouter()


@router.post("", response_model=PurchaseSummary, status_code=status.HTTP_201_CREATED)
async def purchase_plugin(
    data: PurchaseCreate,
    user: User = Depends(get_current_user),
    service: CommerceService = Depends(get_commerce_service),
) -> PurchaseSummary:
    """Record a purchase of a plugin.

    Args:
        data: Plugin to purchase.
        user: Current user.
        service: Commerce service.

    Returns:
        Recorded purchase.
    """
    purchase = await service.purchase(user.id, data.plugin_id)
    return PurchaseSummary.from_purchase(purchase)


@router.get("", response_model=list[PurchaseDetail])
async def list_my_purchases(
    user: User = Depends(get_current_user),
    service: CommerceService = Depends(get_commerce_service),
) -> list[PurchaseDetail]:
    return await service.list_my_purchases(user.id)


@router.get("/check/{plugin_id}", response_model=PurchaseCheckResponse)
async def check_purchase(
    plugin_id: str,
    user: User = Depends(get_current_user),
    service: CommerceService = Depends(get_commerce_service),
) -> PurchaseCheckResponse:
    purchased = await service.check_purchased(user.id, plugin_id)
    return PurchaseCheckResponse(purchased=purchased)
