import os
import tempfile

os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="classdrop-test-"))

from datetime import datetime, timedelta, timezone  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from api.sessions.repositories.session_registry import SessionRegistry  # noqa: E402
from main import create_app  # noqa: E402
from rate_limit import SlidingWindowRateLimiter  # noqa: E402
from storage import FileStorage  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(tmp_path / "uploads")


@pytest.fixture
def registry(storage, clock):
    return SessionRegistry(storage, ttl=timedelta(seconds=600), clock=clock)


@pytest.fixture
def stored_file(storage):
    """Write a file into storage and return its handle."""

    def _store(handle: str = "1700000000000000_slides.pdf", content: bytes = b"%PDF-1.4 test"):
        storage.path_for(handle).write_bytes(content)
        return handle

    return _store


@pytest.fixture
def download_limiter():
    return SlidingWindowRateLimiter(limit=1000, window_seconds=600)


@pytest.fixture
def app(registry, storage, download_limiter):
    return create_app(
        registry=registry,
        storage=storage,
        download_limiter=download_limiter,
        origins=["http://localhost:3000"],
    )


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
