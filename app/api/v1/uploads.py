"""Shared checks for uploaded files."""

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import UploadError
from app.core.validators import file_extension


def read_upload(file: UploadFile, allowed_extensions: list[str], kind: str) -> bytes:
    """Validate name, extension and size of an uploaded file and return its content."""
    if not file.filename:
        raise UploadError("No file provided")

    if file_extension(file.filename) not in allowed_extensions:
        raise UploadError(f"Only {kind} files are allowed ({', '.join(allowed_extensions)})")

    content = file.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise UploadError(f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")

    if not content:
        raise UploadError("Uploaded file is empty")

    return content
