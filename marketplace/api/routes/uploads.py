"""Public access to stored thumbnails."""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from marketplace.api.deps import get_storage
from marketplace.services.uploads import UploadKind
from marketplace.storage.manager import StorageManager

router = APIRouter()


def guess_media_type(filename: str) -> str:
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or "application/octet-stream"


@router.get("/thumbnails/{filename}")
async def get_thumbnail(
    filename: str,
    storage: StorageManager = Depends(get_storage),
) -> StreamingResponse:
    """Stream a thumbnail image.

    Args:
        filename: Stored thumbnail name.
        storage: Storage manager.

    Returns:
        Streaming response with the image.
    """
    remote_path = f"{UploadKind.THUMBNAIL.value}/{filename}"
    if filename.startswith(".") or not await storage.exists(remote_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    return StreamingResponse(storage.stream(remote_path), media_type=guess_media_type(filename))
