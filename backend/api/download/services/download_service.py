"""Download service — maps registry outcomes onto HTTP."""

from collections.abc import Iterator
from pathlib import Path
from urllib.parse import quote

from api.sessions.dto.session import ResolveOutcome, SessionView

CHUNK_SIZE = 1024 * 1024  # 1MB

STATUS_BY_OUTCOME = {
    ResolveOutcome.OK: 200,
    ResolveOutcome.INVALID_CODE: 404,
    ResolveOutcome.NOT_FOUND: 404,
    ResolveOutcome.EXPIRED: 410,
    ResolveOutcome.GONE: 410,
    ResolveOutcome.PIN_REQUIRED: 401,
}

MESSAGE_BY_OUTCOME = {
    ResolveOutcome.INVALID_CODE: "Invalid or missing code.",
    ResolveOutcome.NOT_FOUND: "Code not found or expired.",
    ResolveOutcome.EXPIRED: "File expired.",
    ResolveOutcome.GONE: "File deleted before download.",
    ResolveOutcome.PIN_REQUIRED: "PIN required or incorrect.",
}

# Audit log action per failure; codes that never matched a session are not logged.
ACTION_BY_OUTCOME = {
    ResolveOutcome.EXPIRED: "DOWNLOAD_EXPIRED",
    ResolveOutcome.GONE: "DOWNLOAD_MISSING",
    ResolveOutcome.PIN_REQUIRED: "DOWNLOAD_PIN_FAIL",
}


def status_for(outcome: ResolveOutcome) -> int:
    return STATUS_BY_OUTCOME[outcome]


def message_for(outcome: ResolveOutcome) -> str:
    return MESSAGE_BY_OUTCOME.get(outcome, "")


def file_headers(view: SessionView) -> dict[str, str]:
    return {
        "Content-Disposition": f'attachment; filename="{quote(view.name)}"',
        "Content-Length": str(view.size),
    }


def iter_file(path: Path, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            yield chunk
