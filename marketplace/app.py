"""FastAPI application factory."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace import __version__
from marketplace.api import create_router
from marketplace.api.routes import uploads
from marketplace.config import Settings, get_settings
from marketplace.db.database import Database
from marketplace.exceptions import ConfigurationError, MarketplaceException
from marketplace.storage.manager import StorageManager

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def create_lifespan(settings: Settings):
    """Create a lifespan context manager.

    Args:
        settings: Application settings.

    Returns:
        Lifespan context manager.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Open the database and artifact store for the app's lifetime.

        Args:
            app: FastAPI application.

        Yields:
            None.
        """
        db = Database(settings.database_url)
        await db.initialize()
        app.state.db = db

        app.state.storage = StorageManager(settings)

        logger.info("Plugin marketplace started")

        yield

        await db.close()
        logger.info("Plugin marketplace stopped")

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Plugin Marketplace",
        description="Marketplace for game server plugins",
        version=__version__,
        lifespan=create_lifespan(settings),
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MarketplaceException)
    async def marketplace_error_handler(
        request: Request,
        exc: MarketplaceException,
    ) -> JSONResponse:
        """Handle marketplace errors.

        Server-side failures other than missing configuration are logged
        and reported without details.

        Args:
            request: FastAPI request.
            exc: Marketplace error.

        Returns:
            JSON error response.
        """
        detail = exc.message
        if exc.status_code >= 500 and not isinstance(exc, ConfigurationError):
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            detail = GENERIC_ERROR
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR})

    # Add middleware for request state
    @app.middleware("http")
    async def add_request_state(request: Request, call_next):
        """Add storage and database to request state and log the request.

        Args:
            request: FastAPI request.
            call_next: Next middleware.

        Returns:
            Response.
        """
        if hasattr(app.state, "db"):
            request.state.db = app.state.db
        if hasattr(app.state, "storage"):
            request.state.storage = app.state.storage

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f} ms)"
        )
        return response

    app.include_router(create_router(), prefix="/api")
    app.include_router(uploads.router, prefix="/uploads", tags=["uploads"])

    return app


# Create default application instance
app = create_app()
