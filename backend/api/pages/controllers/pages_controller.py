"""Pages controller — presenter and recipient pages."""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from config import ALLOWED_MIME_TYPES, CODE_TTL_SECONDS, MAX_UPLOAD_BYTES, PIN_MAX_LENGTH

router = APIRouter(tags=["Pages"])

TEMPLATES_DIR = Path(__file__).parent.parent.parent.parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _filesize(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


def _duration(seconds: int) -> str:
    if seconds % 60:
        return f"{seconds} seconds"
    minutes = seconds // 60
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


templates.env.filters["filesize"] = _filesize
templates.env.filters["duration"] = _duration


def _page_context() -> dict:
    return {
        "ttl_seconds": CODE_TTL_SECONDS,
        "max_upload_bytes": MAX_UPLOAD_BYTES,
        "allowed_types": ALLOWED_MIME_TYPES,
        "pin_max_length": PIN_MAX_LENGTH,
    }


@router.get("/", include_in_schema=False)
async def index():
    return RedirectResponse(url="/student", status_code=302)


@router.get("/teacher", response_class=HTMLResponse)
async def teacher_page(request: Request):
    return templates.TemplateResponse(request, "teacher.html", _page_context())


@router.get("/student", response_class=HTMLResponse)
async def student_page(request: Request):
    return templates.TemplateResponse(request, "student.html", _page_context())
