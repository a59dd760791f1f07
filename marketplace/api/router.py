"""Main API router configuration."""

from fastapi import APIRouter

from marketplace.api.routes import auth, health, plugins, purchases, users


def create_router() -> APIRouter:
    """Create the main API router with all routes.

    Returns:
        Configured APIRouter.
    """
    router = APIRouter()

    # Health check routes
    router.include_router(
        health.router,
        tags=["health"],
    )

    # Account routes
    router.include_router(
        auth.router,
        prefix="/auth",
        tags=["auth"],
    )
    router.include_router(
        users.router,
        prefix="/users",
        tags=["users"],
    )

    # Plugin routes
    router.include_router(
        plugins.router,
        prefix="/plugins",
        tags=["plugins"],
    )

    # Purchase routes
    router.include_router(
        purchases.router,
        prefix="/purchases",
        tags=["purchases"],
    )

    return router
