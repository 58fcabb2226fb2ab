"""Download controller — metadata probe (HEAD) and file download (GET)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from dependencies import client_ip, get_download_limiter, get_registry, get_storage, remote_address
from rate_limit import SlidingWindowRateLimiter
from storage import FileStorage
from api.download.services import download_service
from api.sessions.dto.session import ResolveResult
from api.sessions.repositories.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Download"])


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_download_limiter),
):
    allowed, _, retry_after = limiter.check(remote_address(request))
    if not allowed:
        logger.warning("[%s] [RATE_LIMITED] path=%s", client_ip(request), request.url.path)
        raise HTTPException(
            status_code=429,
            detail="Too many download attempts. Please try again later.",
            headers={"Retry-After": str(int(retry_after) + 1)},
        )


def _log_failure(request: Request, code: str | None, result: ResolveResult):
    action = download_service.ACTION_BY_OUTCOME.get(result.outcome)
    if action:
        logger.info("[%s] [%s] code=%s", client_ip(request), action, code)


@router.head("/download", dependencies=[Depends(enforce_rate_limit)])
async def probe_file(
    request: Request,
    code: str | None = None,
    pin: str | None = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """Report name and size without sending the body."""
    result = registry.resolve(code, pin)
    if not result.ok:
        _log_failure(request, code, result)
        return Response(status_code=download_service.status_for(result.outcome))

    headers = download_service.file_headers(result.view)
    return Response(status_code=200, headers=headers, media_type=result.view.mime_type)


@router.get("/download", dependencies=[Depends(enforce_rate_limit)])
async def download_file(
    request: Request,
    code: str | None = None,
    pin: str | None = None,
    registry: SessionRegistry = Depends(get_registry),
    storage: FileStorage = Depends(get_storage),
):
    """Stream the file behind a code."""
    result = registry.resolve(code, pin)
    if not result.ok:
        _log_failure(request, code, result)
        raise HTTPException(
            status_code=download_service.status_for(result.outcome),
            detail=download_service.message_for(result.outcome),
        )

    view = result.view
    ip = client_ip(request)
    path = storage.path_for(view.handle)

    def iterfile():
        try:
            yield from download_service.iter_file(path)
        except OSError as e:
            logger.error("[%s] [DOWNLOAD_ERROR] code=%s error=%s", ip, view.code, e)
            raise
        logger.info("[%s] [DOWNLOAD] code=%s file=%s", ip, view.code, view.handle)

    return StreamingResponse(
        iterfile(),
        media_type=view.mime_type,
        headers=download_service.file_headers(view),
    )
