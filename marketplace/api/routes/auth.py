"""Registration and login routes."""

import logging

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_account_service
from marketplace.models.user import AuthResponse, LoginRequest, RegisterRequest, UserSummary
from marketplace.services.account_service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> UserSummary:
    """Create an account.

    Args:
        data: Registration data.
        service: Account service.

    Returns:
        Created user.
    """
    user = await service.register(data)
    logger.info(f"Registered user {user.username}")
    return UserSummary.from_user(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    """Exchange email and password for a bearer token."""
    token, user = await service.login(data.email, data.password)
    return AuthResponse(token=token, user=UserSummary.from_user(user))
