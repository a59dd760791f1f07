"""Health check routes."""

from fastapi import APIRouter, Depends, Response

from marketplace.api.deps import get_db, get_storage
from marketplace.db.database import Database
from marketplace.storage.manager import StorageManager

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}


@router.head("/health")
async def health_check_head() -> Response:
    return Response(status_code=200)


@router.get("/ready")
async def readiness_check(
    response: Response,
    db: Database = Depends(get_db),
    storage: StorageManager = Depends(get_storage),
) -> dict:
    """Readiness check endpoint.

    Checks database and storage connectivity.

    Args:
        response: Outgoing response, set to 503 when not ready.
        db: Database instance.
        storage: Storage manager instance.

    Returns:
        Readiness status with component health details.
    """
    errors = []

    db_healthy = await db.health_check()
    if not db_healthy:
        errors.append("database")

    storage_status = storage.health_check()
    if not storage_status["healthy"]:
        errors.append("storage")

    details = {"database": db_healthy, "storage": storage_status}
    if errors:
        response.status_code = 503
        return {"status": "not_ready", "errors": errors, "details": details}

    return {"status": "ready", "details": details}
