"""Configuration module using Pydantic Settings."""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Attributes:
        host: Host address for the server.
        port: Port number for the server.
        database_url: SQLite database URL.
        storage_backend: Artifact store implementation ("local" or "minio").
        upload_dir: Root directory of the local artifact store.
        minio_endpoint: MinIO server endpoint.
        minio_access_key: MinIO access key.
        minio_secret_key: MinIO secret key.
        minio_bucket: MinIO bucket name.
        minio_secure: Use HTTPS for MinIO.
        jwt_secret: Secret used to sign bearer tokens.
        token_expire_days: Bearer token lifetime in days.
        public_url: Public base URL used for thumbnail links.
        max_upload_size_mb: Upload size cap per file.
        cors_origins: Allowed CORS origins.
        debug: Enable debug mode.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="server_host", description="Server host address")
    port: int = Field(default=3000, alias="server_port", description="Server port")

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./data/marketplace.db",
        description="Database connection URL",
    )

    # Artifact Store Configuration
    storage_backend: Literal["local", "minio"] = Field(
        default="local",
        description="Artifact store backend",
    )
    upload_dir: str = Field(
        default="./uploads",
        description="Root directory for the local artifact store",
    )
    minio_endpoint: str = Field(
        default="localhost:9000",
        description="MinIO endpoint",
    )
    minio_access_key: str = Field(
        default="minioadmin",
        description="MinIO access key",
    )
    minio_secret_key: str = Field(
        default="minioadmin",
        description="MinIO secret key",
    )
    minio_bucket: str = Field(
        default="plugin-marketplace",
        description="MinIO bucket name",
    )
    minio_secure: bool = Field(
        default=False,
        description="Use HTTPS for MinIO",
    )

    # Authentication
    jwt_secret: str = Field(
        default="",
        description="Shared secret for HS256 bearer tokens",
    )
    token_expire_days: int = Field(
        default=30,
        ge=1,
        description="Bearer token lifetime in days",
    )

    # Uploads
    public_url: Optional[str] = Field(
        default=None,
        description="Public base URL for links to stored thumbnails",
    )
    max_upload_size_mb: int = Field(
        default=20,
        ge=1,
        description="Maximum size of a single uploaded file in MiB",
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="List of allowed CORS origins",
    )

    # Debug Mode
    debug: bool = Field(default=False, description="Enable debug mode")

    @property
    def max_upload_bytes(self) -> int:
        """Upload size cap in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @field_validator("minio_endpoint", mode="before")
    @classmethod
    def clean_minio_endpoint(cls, v: str | None) -> str | None:
        if not v or not isinstance(v, str):
            return v

        # The client wants host[:port] only
        clean = v.replace("http://", "").replace("https://", "")
        clean = clean.split("/")[0].split("#")[0]
        return clean.strip()

    @field_validator("public_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        if not v or not isinstance(v, str):
            return v
        return v.rstrip("/")


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
