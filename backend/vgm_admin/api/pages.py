"""
HTML admin page: uploader plus gallery.

The gallery is rendered server-side from the same listing the JSON
endpoint returns; the uploader posts to /api/upload from the browser.
"""
from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from vgm_admin.services.image_service import ImageService, get_image_service
from vgm_admin.storage.r2_client import StorageError
from vgm_admin.utils.formatting import (
    file_name_from_key,
    format_file_size,
    format_timestamp,
    generate_embed_code,
)
from vgm_admin.utils.validation import ALLOWED_CONTENT_TYPES, MAX_UPLOAD_BYTES

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

router = APIRouter()


@lru_cache()
def get_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals["format_file_size"] = format_file_size
    templates.env.globals["format_timestamp"] = format_timestamp
    templates.env.globals["file_name_from_key"] = file_name_from_key
    templates.env.globals["generate_embed_code"] = generate_embed_code
    templates.env.globals["allowed_content_types"] = ",".join(ALLOWED_CONTENT_TYPES)
    templates.env.globals["max_upload_bytes"] = MAX_UPLOAD_BYTES
    return templates


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(request: Request, service: ImageService = Depends(get_image_service)):
    """Render the admin page. Storage failures render the gallery error state."""
    images = []
    error = None
    try:
        images = await run_in_threadpool(service.list_images)
    except StorageError:
        error = "Failed to load images"
    
    return get_templates().TemplateResponse(
        request,
        "index.html",
        {"images": images, "error": error},
    )
