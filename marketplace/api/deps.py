"""FastAPI dependencies for dependency injection."""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.auth.tokens import TokenClient, TokenPayload
from marketplace.config import Settings
from marketplace.db.database import Database
from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.db.repositories.user_repo import UserRepository
from marketplace.models.user import User
from marketplace.services.account_service import AccountService
from marketplace.services.authoring_service import AuthoringService
from marketplace.services.catalog_service import CatalogService
from marketplace.services.commerce_service import CommerceService
from marketplace.services.delivery_service import DeliveryService
from marketplace.storage.manager import StorageManager

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


async def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with.

    Args:
        request: FastAPI request.

    Returns:
        Application settings.
    """
    return request.app.state.settings


async def get_db(request: Request) -> Database:
    """Get database from request state.

    Args:
        request: FastAPI request.

    Returns:
        Database instance.
    """
    return request.state.db


async def get_storage(request: Request) -> StorageManager:
    """Get storage manager from request state.

    Args:
        request: FastAPI request.

    Returns:
        Storage manager.
    """
    return request.state.storage


async def get_user_repo(db: Database = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_plugin_repo(db: Database = Depends(get_db)) -> PluginRepository:
    return PluginRepository(db)


async def get_purchase_repo(db: Database = Depends(get_db)) -> PurchaseRepository:
    return PurchaseRepository(db)


@lru_cache(maxsize=4)
def _get_token_client(jwt_secret: str, expire_days: int) -> TokenClient:
    """Get cached token client instance.

    Args:
        jwt_secret: Signing secret.
        expire_days: Token lifetime in days.

    Returns:
        Token client instance.
    """
    return TokenClient(jwt_secret=jwt_secret, expire_days=expire_days)


async def get_token_client(
    settings: Settings = Depends(get_app_settings),
) -> TokenClient:
    return _get_token_client(settings.jwt_secret, settings.token_expire_days)


async def get_account_service(
    repo: UserRepository = Depends(get_user_repo),
    tokens: TokenClient = Depends(get_token_client),
) -> AccountService:
    return AccountService(repo, tokens)


async def get_catalog_service(
    repo: PluginRepository = Depends(get_plugin_repo),
    purchase_repo: PurchaseRepository = Depends(get_purchase_repo),
) -> CatalogService:
    return CatalogService(repo, purchase_repo)


async def get_authoring_service(
    request: Request,
    repo: PluginRepository = Depends(get_plugin_repo),
    storage: StorageManager = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> AuthoringService:
    """Get authoring service.

    Thumbnail links use ``public_url`` when configured, otherwise the base
    URL of the current request.

    Args:
        request: FastAPI request.
        repo: Plugin repository.
        storage: Storage manager.
        settings: Application settings.

    Returns:
        Authoring service.
    """
    base_url = settings.public_url or str(request.base_url).rstrip("/")
    return AuthoringService(repo, storage, settings.max_upload_bytes, base_url)


async def get_commerce_service(
    plugin_repo: PluginRepository = Depends(get_plugin_repo),
    repo: PurchaseRepository = Depends(get_purchase_repo),
) -> CommerceService:
    return CommerceService(plugin_repo, repo)


async def get_delivery_service(
    repo: PluginRepository = Depends(get_plugin_repo),
    purchase_repo: PurchaseRepository = Depends(get_purchase_repo),
    storage: StorageManager = Depends(get_storage),
) -> DeliveryService:
    return DeliveryService(repo, purchase_repo, storage)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    client: TokenClient = Depends(get_token_client),
) -> Optional[TokenPayload]:
    """Verify the bearer token of a request.

    Args:
        credentials: HTTP authorization credentials (Bearer token).
        client: Token client.

    Returns:
        TokenPayload if valid, None if missing or invalid.

    Raises:
        ConfigurationError: If no signing secret is configured.
    """
    if not credentials:
        return None

    payload = client.validate_token(credentials.credentials)
    if payload:
        logger.debug(f"Token verified for user: {payload.user_id}")
    return payload


async def get_current_user(
    token_data: Optional[TokenPayload] = Depends(verify_token),
    user_repo: UserRepository = Depends(get_user_repo),
) -> User:
    """Get current authenticated user.

    Args:
        token_data: Decoded token claims.
        user_repo: User repository.

    Returns:
        Current user.

    Raises:
        HTTPException: If not authenticated.
    """
    if not token_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await user_repo.get_by_id(token_data.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token_data: Optional[TokenPayload] = Depends(verify_token),
    user_repo: UserRepository = Depends(get_user_repo),
) -> Optional[User]:
    """Get current user if authenticated.

    An invalid token is treated as anonymous.

    Args:
        token_data: Decoded token claims.
        user_repo: User repository.

    Returns:
        Current user or None.
    """
    if not token_data:
        return None
    return await user_repo.get_by_id(token_data.user_id)
