"""Static overlay pages for OBS browser sources"""

import re
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

router = APIRouter(prefix="/overlay", tags=["overlay"])

OVERLAY_DIR = Path(__file__).resolve().parent.parent / "static" / "overlay"

_NAME_RE = re.compile(r"^[a-z0-9_-]+$")


@router.get("/{metric_name}")
async def get_overlay(metric_name: str) -> FileResponse:
    """Serve the overlay page for *metric_name* (e.g. ``subgoal``)."""
    if not _NAME_RE.match(metric_name):
        raise HTTPException(status_code=404, detail="Overlay not found")

    page = OVERLAY_DIR / f"{metric_name}.html"
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Overlay not found")

    return FileResponse(page, media_type="text/html")
