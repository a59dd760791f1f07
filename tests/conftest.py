"""Pytest configuration and fixtures."""

import io
from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio
from fastapi import UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from marketplace.app import create_app
from marketplace.auth.tokens import TokenClient
from marketplace.config import Settings
from marketplace.db.database import Database
from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.purchase_repo import PurchaseRepository
from marketplace.db.repositories.user_repo import UserRepository
from marketplace.models.plugin import Plugin, PluginDraft
from marketplace.models.user import User
from marketplace.services.account_service import AccountService
from marketplace.services.authoring_service import AuthoringService
from marketplace.services.catalog_service import CatalogService
from marketplace.services.commerce_service import CommerceService
from marketplace.services.delivery_service import DeliveryService
from marketplace.storage.manager import StorageManager

JWT_SECRET = "test_jwt_secret_for_marketplace"
PUBLIC_URL = "http://testserver"

JAR_BYTES = b"PK\x03\x04 fake jar content"
PNG_BYTES = b"\x89PNG\r\n\x1a\n fake image"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary database and upload directory.

    Args:
        tmp_path: Pytest temporary path fixture.

    Returns:
        Test settings.
    """
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        database_url=f"sqlite:///{tmp_path / 'test_marketplace.db'}",
        storage_backend="local",
        upload_dir=str(tmp_path / "uploads"),
        jwt_secret=JWT_SECRET,
        public_url=PUBLIC_URL,
        cors_origins=["http://localhost:3000"],
    )


@pytest.fixture
def app(test_settings: Settings):
    """Create test application.

    Args:
        test_settings: Test settings.

    Returns:
        FastAPI application.
    """
    return create_app(test_settings)


@pytest.fixture
def client(app) -> TestClient:
    """Create test client with lifespan.

    Args:
        app: FastAPI application.

    Returns:
        Test client.
    """
    # Use context manager to trigger lifespan events
    with TestClient(app) as client:
        yield client


# =================== Service-level fixtures ===================


@pytest_asyncio.fixture
async def db(test_settings: Settings):
    """Open a fresh database for one test."""
    database = Database(test_settings.database_url)
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def storage(test_settings: Settings) -> StorageManager:
    return StorageManager(test_settings)


@pytest.fixture
def user_repo(db: Database) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def plugin_repo(db: Database) -> PluginRepository:
    return PluginRepository(db)


@pytest.fixture
def purchase_repo(db: Database) -> PurchaseRepository:
    return PurchaseRepository(db)


@pytest.fixture
def token_client() -> TokenClient:
    return TokenClient(jwt_secret=JWT_SECRET)


@pytest.fixture
def account_service(user_repo: UserRepository, token_client: TokenClient) -> AccountService:
    return AccountService(user_repo, token_client)


@pytest.fixture
def authoring_service(
    plugin_repo: PluginRepository,
    storage: StorageManager,
    test_settings: Settings,
) -> AuthoringService:
    return AuthoringService(plugin_repo, storage, test_settings.max_upload_bytes, PUBLIC_URL)


@pytest.fixture
def catalog_service(
    plugin_repo: PluginRepository,
    purchase_repo: PurchaseRepository,
) -> CatalogService:
    return CatalogService(plugin_repo, purchase_repo)


@pytest.fixture
def commerce_service(
    plugin_repo: PluginRepository,
    purchase_repo: PurchaseRepository,
) -> CommerceService:
    return CommerceService(plugin_repo, purchase_repo)


@pytest.fixture
def delivery_service(
    plugin_repo: PluginRepository,
    purchase_repo: PurchaseRepository,
    storage: StorageManager,
) -> DeliveryService:
    return DeliveryService(plugin_repo, purchase_repo, storage)


# =================== Data factories ===================


def make_upload(
    filename: str,
    content: bytes,
    content_type: str,
) -> UploadFile:
    """Build an in-memory upload as a route would receive it."""
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def jar_upload() -> Callable[..., UploadFile]:
    def factory(
        filename: str = "plugin.jar",
        content: bytes = JAR_BYTES,
        content_type: str = "application/java-archive",
    ) -> UploadFile:
        return make_upload(filename, content, content_type)

    return factory


@pytest.fixture
def image_upload() -> Callable[..., UploadFile]:
    def factory(
        filename: str = "thumb.png",
        content: bytes = PNG_BYTES,
        content_type: str = "image/png",
    ) -> UploadFile:
        return make_upload(filename, content, content_type)

    return factory


async def _create_user(repo: UserRepository, username: str) -> User:
    return await repo.create(
        User(
            id="",
            username=username,
            email=f"{username}@example.com",
            password_hash="not-a-real-hash",
        )
    )


@pytest_asyncio.fixture
async def author(user_repo: UserRepository) -> User:
    return await _create_user(user_repo, "author")


@pytest_asyncio.fixture
async def buyer(user_repo: UserRepository) -> User:
    return await _create_user(user_repo, "buyer")


@pytest_asyncio.fixture
async def stranger(user_repo: UserRepository) -> User:
    return await _create_user(user_repo, "stranger")


@pytest.fixture
def create_plugin(
    authoring_service: AuthoringService,
    jar_upload: Callable[..., UploadFile],
    image_upload: Callable[..., UploadFile],
):
    """Factory creating a plugin through the authoring service."""

    async def factory(owner: User, **fields) -> Plugin:
        draft = PluginDraft(
            name=fields.pop("name", "WorldGuard"),
            description=fields.pop("description", "Protects regions of the world"),
            category=fields.pop("category", "protection"),
            price=fields.pop("price", 4.99),
            features=fields.pop("features", '["regions", "flags"]'),
            requirements=fields.pop("requirements", None),
            version=fields.pop("version", "1.0.0"),
            minecraft_version=fields.pop("minecraft_version", "1.20"),
        )
        return await authoring_service.create_plugin(
            owner.id, draft, jar_upload(), image_upload()
        )

    return factory


def stored_files(test_settings: Settings) -> list[Path]:
    """All files currently in the local artifact store."""
    root = Path(test_settings.upload_dir)
    return sorted(p for p in root.rglob("*") if p.is_file())


@pytest.fixture
def list_stored(test_settings: Settings) -> Callable[[], list[Path]]:
    return lambda: stored_files(test_settings)
