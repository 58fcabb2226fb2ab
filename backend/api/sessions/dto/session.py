"""Session Data Transfer Objects."""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SessionView(BaseModel):
    """Read-only snapshot handed to the download gateway."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    size: int
    mime_type: str
    handle: str
    expires_at: datetime


class ResolveOutcome(str, enum.Enum):
    OK = "ok"
    INVALID_CODE = "invalid_code"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    GONE = "gone"
    PIN_REQUIRED = "pin_required"


class ResolveResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: ResolveOutcome
    view: SessionView | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ResolveOutcome.OK
