"""Session model — one live code and the file it points at."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Session:
    code: str
    storage_handle: str
    original_name: str
    size: int
    mime_type: str
    created_at: datetime
    expires_at: datetime
    pin: str | None = None
    downloaded: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def pin_matches(self, pin: str | None) -> bool:
        """A session without a PIN admits everyone; a missing caller PIN never matches."""
        if self.pin is None:
            return True
        return pin is not None and pin == self.pin
