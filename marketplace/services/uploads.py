"""Validation and staging of multipart file uploads."""

import secrets
import tempfile
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile

from marketplace.exceptions import ValidationError

CHUNK_SIZE = 64 * 1024

JAR_EXTENSION = ".jar"
JAR_MIME_TYPE = "application/java-archive"


class UploadKind(str, Enum):
    """Kind of uploaded file, named after its directory in the store."""

    PLUGIN = "plugins"
    THUMBNAIL = "thumbnails"

    @property
    def field_name(self) -> str:
        """Form field the file arrives in."""
        return "plugin_file" if self is UploadKind.PLUGIN else "thumbnail_file"


@dataclass
class StagedUpload:
    """An uploaded file spooled to a local temporary file.

    Attributes:
        path: Temporary file holding the upload.
        filename: Generated file name in the store.
        remote_path: Destination path in the store.
        size_bytes: Number of bytes received.
    """

    path: Path
    filename: str
    remote_path: str
    size_bytes: int


def file_extension(filename: str | None) -> str:
    """Lower-case extension of a file name, including the dot."""
    return Path(filename or "").suffix.lower()


def validate_upload(file: UploadFile, kind: UploadKind) -> str:
    """Check the extension and MIME type of an upload.

    Args:
        file: Uploaded file.
        kind: Expected kind of file.

    Returns:
        Extension to use for the stored file.

    Raises:
        ValidationError: If the file type is not accepted.
    """
    extension = file_extension(file.filename)
    content_type = (file.content_type or "").lower()

    if kind is UploadKind.PLUGIN:
        if extension != JAR_EXTENSION and content_type != JAR_MIME_TYPE:
            raise ValidationError("Only .jar files are allowed for plugins", kind.field_name)
        return extension or JAR_EXTENSION

    if not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed for thumbnails", kind.field_name)
    return extension


def generate_filename(field_name: str, extension: str) -> str:
    """Generate a collision-resistant name for a stored file.

    Args:
        field_name: Form field the file came from.
        extension: File extension including the dot.

    Returns:
        Name of the form ``{field}-{epoch_ms}-{random}{ext}``.
    """
    return f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"


@asynccontextmanager
async def stage_upload(
    file: UploadFile,
    kind: UploadKind,
    max_bytes: int,
) -> AsyncIterator[StagedUpload]:
    """Validate an upload and spool it to a temporary file.

    The temporary file is removed when the block exits.

    Args:
        file: Uploaded file.
        kind: Expected kind of file.
        max_bytes: Size cap in bytes.

    Yields:
        Staged upload ready to be pushed to the store.

    Raises:
        ValidationError: If the type is not accepted or the file is too large.
    """
    extension = validate_upload(file, kind)
    filename = generate_filename(kind.field_name, extension)

    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=extension)
    tmp_path = Path(tmp.name)
    try:
        size = 0
        with tmp:
            while chunk := await file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(
                        f"File too large (max {max_bytes // (1024 * 1024)} MB)",
                        kind.field_name,
                    )
                tmp.write(chunk)

        yield StagedUpload(
            path=tmp_path,
            filename=filename,
            remote_path=f"{kind.value}/{filename}",
            size_bytes=size,
        )
    finally:
        tmp_path.unlink(missing_ok=True)
