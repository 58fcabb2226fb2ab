"""Upload service — stores an incoming file and opens a session for it."""

import os
import shutil
import tempfile
import time

from fastapi import UploadFile
from werkzeug.utils import secure_filename

from config import ALLOWED_MIME_TYPES, MAX_UPLOAD_BYTES, PIN_MAX_LENGTH
from storage import TEMP_PREFIX, FileStorage
from api.sessions.repositories.session_registry import SessionRegistry
from api.sessions.services.code_generator import CodeSpaceExhausted
from api.upload.dto.upload import UploadResponse


CHUNK_SIZE = 1024 * 1024  # 1MB
MULTIPART_OVERHEAD = 64 * 1024


class UploadRejected(ValueError):
    status_code = 400


class MissingFile(UploadRejected):
    pass


class EmptyUpload(UploadRejected):
    pass


class UploadTooLarge(UploadRejected):
    status_code = 413


class UnsupportedFileType(UploadRejected):
    status_code = 415


class InvalidPin(UploadRejected):
    pass


def validate_pin(pin: str | None, max_length: int = PIN_MAX_LENGTH) -> str | None:
    """Normalize the optional PIN. Empty means no PIN."""
    if not pin:
        return None
    if len(pin) > max_length:
        raise InvalidPin(f"PIN must be at most {max_length} characters")
    return pin


def check_declared_length(content_length: str | None, max_bytes: int = MAX_UPLOAD_BYTES):
    """Fail fast when the request body is already known to be over the limit."""
    if not content_length:
        return
    try:
        length = int(content_length)
    except ValueError:
        return
    if length > max_bytes + MULTIPART_OVERHEAD:
        raise UploadTooLarge(f"File exceeds max size of {_format_size(max_bytes)}")


def sanitize_name(filename: str) -> str:
    """Safe on-disk name with a creation-time prefix."""
    safe = secure_filename(filename) or "upload"
    return f"{time.time_ns() // 1000}_{safe}"


def _format_size(size: int) -> str:
    if size < 1024**2:
        return f"{size / 1024:.0f} KB"
    return f"{size / 1024**2:.0f} MB"


async def save_upload(
    file: UploadFile | None,
    registry: SessionRegistry,
    storage: FileStorage,
    pin: str | None = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
    allowed_types: list[str] | None = None,
) -> UploadResponse:
    """Stream the upload to disk, validate it and register a session."""
    if allowed_types is None:
        allowed_types = ALLOWED_MIME_TYPES

    if file is None or not file.filename:
        raise MissingFile("No file uploaded.")

    mime_type = file.content_type or "application/octet-stream"
    if mime_type not in allowed_types:
        raise UnsupportedFileType(f"File type {mime_type} is not allowed.")

    pin = validate_pin(pin)

    tmp = tempfile.NamedTemporaryFile(delete=False, dir=str(storage.root), prefix=TEMP_PREFIX)
    try:
        size = 0
        while chunk := await file.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                raise UploadTooLarge(f"File exceeds max size of {_format_size(max_bytes)}")
            tmp.write(chunk)
        tmp.close()

        if size == 0:
            raise EmptyUpload("Cannot upload zero-byte file.")

        handle = sanitize_name(file.filename)
        shutil.move(tmp.name, str(storage.path_for(handle)))
    except BaseException:
        tmp.close()
        if os.path.exists(tmp.name):
            os.unlink(tmp.name)
        raise

    try:
        code = registry.create(
            storage_handle=handle,
            original_name=file.filename,
            size=size,
            mime_type=mime_type,
            pin=pin,
        )
    except CodeSpaceExhausted:
        storage.delete(handle)
        raise

    return UploadResponse(
        code=code,
        file=file.filename,
        size=size,
        expires_in=int(registry.ttl.total_seconds()),
        expires_at=registry.expires_at(code),
        pin_required=pin is not None,
    )
