"""Session registry — in-memory map from code to session.

All reads and mutations of the map happen under one lock. Entries that must
go are popped while the lock is held, so exactly one caller ends up owning
the deletion of the backing file; the file itself is removed after the lock
is released.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from storage import FileStorage
from api.sessions.dto.session import ResolveOutcome, ResolveResult, SessionView
from api.sessions.models.session_model import Session
from api.sessions.services.code_generator import generate_code, is_valid_code

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(seconds=600)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _view(session: Session) -> SessionView:
    return SessionView(
        code=session.code,
        name=session.original_name,
        size=session.size,
        mime_type=session.mime_type,
        handle=session.storage_handle,
        expires_at=session.expires_at,
    )


class SessionRegistry:
    def __init__(
        self,
        storage: FileStorage,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
        code_generator: Callable[[Callable[[str], bool]], str] = generate_code,
    ):
        self.storage = storage
        self.ttl = ttl
        self.clock = clock
        self._generate_code = code_generator
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(
        self,
        storage_handle: str,
        original_name: str,
        size: int,
        mime_type: str,
        pin: str | None = None,
    ) -> str:
        """Register a stored file under a fresh code and return the code.

        An empty PIN means no PIN. Raises CodeSpaceExhausted if no free code
        could be drawn.
        """
        pin = pin or None
        with self._lock:
            code = self._generate_code(self._sessions.__contains__)
            now = self.clock()
            self._sessions[code] = Session(
                code=code,
                storage_handle=storage_handle,
                original_name=original_name,
                size=size,
                mime_type=mime_type,
                created_at=now,
                expires_at=now + self.ttl,
                pin=pin,
            )
        return code

    def resolve(self, code: str, pin: str | None = None) -> ResolveResult:
        """Look up a code and decide whether the caller may have the file.

        Checks run in a fixed order: code shape, existence, expiry, backing
        file, PIN. Expired and gone sessions are evicted on the way out.
        """
        if not is_valid_code(code):
            return ResolveResult(outcome=ResolveOutcome.INVALID_CODE)

        evicted: Session | None = None
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return ResolveResult(outcome=ResolveOutcome.NOT_FOUND)

            if session.is_expired(self.clock()):
                evicted = self._sessions.pop(code)
                outcome = ResolveOutcome.EXPIRED
            elif not self.storage.exists(session.storage_handle):
                evicted = self._sessions.pop(code)
                outcome = ResolveOutcome.GONE
            elif not session.pin_matches(pin):
                return ResolveResult(outcome=ResolveOutcome.PIN_REQUIRED)
            else:
                session.downloaded = True
                return ResolveResult(outcome=ResolveOutcome.OK, view=_view(session))

        if outcome is ResolveOutcome.EXPIRED:
            logger.info("[EXPIRED] code=%s evicted on lookup", code)
        else:
            logger.warning("[GONE] code=%s backing file missing, evicted", code)
        self.storage.delete(evicted.storage_handle)
        return ResolveResult(outcome=outcome)

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Evict every session whose expiry is at or before ``now``."""
        if now is None:
            now = self.clock()
        with self._lock:
            expired = [s for s in self._sessions.values() if s.is_expired(now)]
            for session in expired:
                del self._sessions[session.code]

        for session in expired:
            self.storage.delete(session.storage_handle)
            logger.info("[CLEANUP] code=%s expired and deleted", session.code)
        return len(expired)

    def expires_at(self, code: str) -> datetime | None:
        """Stored expiry of a live session, without the side effects of resolve."""
        with self._lock:
            session = self._sessions.get(code)
            return session.expires_at if session else None

    def owned_handles(self) -> set[str]:
        with self._lock:
            return {s.storage_handle for s in self._sessions.values()}

    def get_stats(self) -> dict:
        with self._lock:
            sessions = list(self._sessions.values())
        return {
            "active_sessions": len(sessions),
            "downloaded_sessions": sum(1 for s in sessions if s.downloaded),
            "total_storage": sum(s.size for s in sessions),
        }
