"""Upload controller — handles multipart file uploads."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from dependencies import client_ip, get_registry, get_storage
from api.sessions.repositories.session_registry import SessionRegistry
from api.sessions.services.code_generator import CodeSpaceExhausted
from api.upload.dto.upload import UploadResponse
from api.upload.services import upload_service
from storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


async def reject_oversized_uploads(request: Request, call_next):
    """Answer 413 before the body is read when Content-Length is already too big."""
    if request.method == "POST" and request.url.path == "/upload":
        try:
            upload_service.check_declared_length(request.headers.get("content-length"))
        except upload_service.UploadTooLarge as e:
            logger.info("[%s] [UPLOAD_REJECTED] %s", client_ip(request), e)
            return JSONResponse(status_code=e.status_code, content={"detail": str(e)})
    return await call_next(request)


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    request: Request,
    file: UploadFile | None = File(None),
    pin: str | None = Form(None),
    registry: SessionRegistry = Depends(get_registry),
    storage: FileStorage = Depends(get_storage),
):
    """Store a file and return the code that unlocks it."""
    if pin is None:
        pin = request.query_params.get("pin")

    try:
        response = await upload_service.save_upload(
            file=file,
            registry=registry,
            storage=storage,
            pin=pin,
        )
    except upload_service.UploadRejected as e:
        logger.info("[%s] [UPLOAD_REJECTED] %s", client_ip(request), e)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except CodeSpaceExhausted as e:
        logger.error("[%s] [UPLOAD_FAILED] %s", client_ip(request), e)
        raise HTTPException(status_code=503, detail="No upload codes available, try again later.")

    logger.info(
        "[%s] [UPLOAD] code=%s file=%s size=%d pin=%s",
        client_ip(request),
        response.code,
        response.file,
        response.size,
        "set" if response.pin_required else "none",
    )
    return response
