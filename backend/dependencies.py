"""Request dependencies — shared state living on app.state."""

from fastapi import Request

from api.sessions.repositories.session_registry import SessionRegistry
from rate_limit import SlidingWindowRateLimiter
from storage import FileStorage


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def get_download_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.download_limiter


def remote_address(request: Request) -> str:
    """Socket peer address. Headers are caller-controlled and never used as a key."""
    return request.client.host if request.client else "unknown"


def client_ip(request: Request) -> str:
    """Best-guess client address for log lines."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
