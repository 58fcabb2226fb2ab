"""ClassDrop — Main application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import (
    CODE_TTL_SECONDS,
    CORS_EXTRA_ORIGINS,
    DOWNLOAD_RATE_LIMIT,
    DOWNLOAD_RATE_WINDOW_SECONDS,
    HOST,
    LOG_LEVEL,
    PORT,
    SWEEP_INTERVAL_SECONDS,
    UPLOAD_DIR,
)
from cleanup import ExpirySweeper, remove_orphaned_files
from lan import allowed_origins, get_local_ips
from rate_limit import SlidingWindowRateLimiter
from storage import FileStorage
from api.sessions.repositories.session_registry import SessionRegistry
from api.pages.controllers.pages_controller import router as pages_router
from api.download.controllers.download_controller import router as download_router
from api.upload.controllers.upload_controller import (
    reject_oversized_uploads,
    router as upload_router,
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    removed = remove_orphaned_files(app.state.registry, app.state.storage)
    if removed:
        logger.info("Removed %d leftover file%s from a previous run", removed, "s" if removed != 1 else "")

    sweeper = ExpirySweeper(app.state.registry, app.state.sweep_interval)
    sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()


def create_app(
    registry: SessionRegistry | None = None,
    storage: FileStorage | None = None,
    download_limiter: SlidingWindowRateLimiter | None = None,
    sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    origins: list[str] | None = None,
) -> FastAPI:
    if storage is None:
        storage = registry.storage if registry else FileStorage(UPLOAD_DIR)
    if registry is None:
        registry = SessionRegistry(storage, ttl=timedelta(seconds=CODE_TTL_SECONDS))
    if download_limiter is None:
        download_limiter = SlidingWindowRateLimiter(DOWNLOAD_RATE_LIMIT, DOWNLOAD_RATE_WINDOW_SECONDS)
    if origins is None:
        origins = allowed_origins(PORT, CORS_EXTRA_ORIGINS)

    app = FastAPI(title="ClassDrop", version="0.1.0", lifespan=lifespan)
    app.state.registry = registry
    app.state.storage = storage
    app.state.download_limiter = download_limiter
    app.state.sweep_interval = sweep_interval

    app.middleware("http")(reject_oversized_uploads)

    # CORS: LAN origins only; requests without an Origin header are unaffected
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "HEAD", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "Content-Length"],
    )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/api/health")
    async def health(request: Request):
        return {"status": "ok", **request.app.state.registry.get_stats()}

    app.include_router(pages_router)
    app.include_router(download_router)
    app.include_router(upload_router)
    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    logger.info("ClassDrop server running on:")
    for ip in get_local_ips():
        logger.info("  http://%s:%d/teacher", ip, PORT)
        logger.info("  http://%s:%d/student", ip, PORT)
    logger.info("  http://localhost:%d/teacher", PORT)
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
