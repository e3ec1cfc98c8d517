"""Local thumbnails for queued uploads.

A preview is a small PNG written to a temporary file. Whoever creates one
owns it and must call :func:`release_preview` once the task goes away.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image

logger = logging.getLogger(__name__)

PREVIEW_MAX_DIM = 256


def create_preview(source: Path, max_dim: int = PREVIEW_MAX_DIM) -> Optional[Path]:
    """Write a thumbnail of *source* to a temporary file and return its path.

    Returns ``None`` when the file cannot be decoded as an image or is too
    large to decode safely; a task without a preview is still uploadable.
    """
    try:
        with Image.open(source) as img:
            img.thumbnail((max_dim, max_dim))
            if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                img = img.convert("RGB")
            fd, name = tempfile.mkstemp(prefix="vgm-preview-", suffix=".png")
            try:
                with os.fdopen(fd, "wb") as fh:
                    img.save(fh, format="PNG")
            except OSError:
                os.unlink(name)
                raise
    except (OSError, Image.DecompressionBombError) as exc:  # OSError includes UnidentifiedImageError
        logger.debug("No preview for %s: %s", source, exc)
        return None
    return Path(name)


def release_preview(preview: Optional[Path]) -> None:
    """Delete a preview file. Safe to call twice."""
    if preview is None:
        return
    preview.unlink(missing_ok=True)
