"""Upload Data Transfer Objects."""

from datetime import datetime

from pydantic import BaseModel


class UploadResponse(BaseModel):
    code: str
    file: str
    size: int
    expires_in: int
    expires_at: datetime
    pin_required: bool
