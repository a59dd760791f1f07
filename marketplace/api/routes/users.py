"""Profile routes for the authenticated user."""

from fastapi import APIRouter, Depends

from marketplace.api.deps import get_account_service, get_current_user
from marketplace.models.user import PasswordChange, ProfileUpdate, User, UserSummary
from marketplace.services.account_service import AccountService

router = APIRouter()


@router.get("/profile", response_model=UserSummary)
async def get_profile(
    user: User = Depends(get_current_user),
) -> UserSummary:
    return UserSummary.from_user(user)


@router.put("/profile", response_model=UserSummary)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> UserSummary:
    """Update the caller's username and/or email.

    Args:
        data: Profile changes.
        user: Current user.
        service: Account service.

    Returns:
        Updated user.
    """
    updated = await service.update_profile(user.id, data)
    return UserSummary.from_user(updated)


@router.put("/password")
async def change_password(
    data: PasswordChange,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> dict:
    await service.change_password(user.id, data)
    return {"message": "Password updated"}
