"""Client-side gallery over ``GET /api/images``.

Keeps the listing exactly in the order the server returns it (newest
first), tracks loading and error states, and builds the detail view with
copyable embed snippets.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

import httpx

from vgm_admin.config import settings
from vgm_admin.schemas.image import ImageListResponse, StoredImage
from vgm_admin.utils.formatting import (
    EmbedSnippets,
    file_name_from_key,
    format_file_size,
    format_timestamp,
    generate_embed_code,
)

logger = logging.getLogger(__name__)

LIST_PATH = "/api/images"
FETCH_FAILED = "Failed to fetch images"
LOAD_FAILED = "Failed to load images"
COPIED_SECONDS = 2.0


class GalleryState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class ImageDetail:
    key: str
    name: str
    url: str
    size_text: str
    last_modified_text: str
    snippets: EmbedSnippets


class Gallery:
    """Image listing with a selectable detail view."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        list_path: str = LIST_PATH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=settings.api_base_url)
        self._list_path = list_path
        self._clock = clock
        self.state = GalleryState.LOADING
        self.images: List[StoredImage] = []
        self.error: Optional[str] = None
        self.selected: Optional[ImageDetail] = None
        self._copied: Optional[Tuple[str, float]] = None

    async def __aenter__(self) -> "Gallery":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def load(self) -> GalleryState:
        """Fetch the listing. Failures leave the previous images in place."""
        self.state = GalleryState.LOADING
        self.error = None
        try:
            response = await self._client.get(self._list_path)
        except httpx.HTTPError as exc:
            logger.warning("Image listing request failed: %s", exc)
            return self._fail(str(exc) or LOAD_FAILED)

        if not response.is_success:
            return self._fail(FETCH_FAILED)

        try:
            listing = ImageListResponse.model_validate(response.json())
        except ValueError as exc:
            logger.warning("Unreadable image listing: %s", exc)
            return self._fail(LOAD_FAILED)

        self.images = listing.images
        self.state = GalleryState.LOADED
        return self.state

    async def refresh(self) -> GalleryState:
        return await self.load()

    async def retry(self) -> GalleryState:
        return await self.load()

    def _fail(self, message: str) -> GalleryState:
        self.error = message
        self.state = GalleryState.ERROR
        return self.state

    def select(self, key: str) -> ImageDetail:
        """Open the detail view for *key*.

        Raises:
            KeyError: If *key* is not in the current listing
        """
        for image in self.images:
            if image.key == key:
                break
        else:
            raise KeyError(key)

        name = file_name_from_key(image.key)
        self.selected = ImageDetail(
            key=image.key,
            name=name,
            url=image.url,
            size_text=format_file_size(image.size),
            last_modified_text=format_timestamp(image.last_modified),
            snippets=generate_embed_code(image.url, name),
        )
        return self.selected

    def close_detail(self) -> None:
        self.selected = None
        self._copied = None

    def copy(self, kind: str, clipboard: Callable[[str], None]) -> str:
        """Hand a snippet of the selected image to *clipboard*.

        The snippet kind reads as copied for two seconds afterwards.

        Raises:
            RuntimeError: If no image is selected
            KeyError: If *kind* is not a snippet kind
        """
        if self.selected is None:
            raise RuntimeError("No image selected")
        text = self.selected.snippets.get(kind)
        clipboard(text)
        self._copied = (kind, self._clock() + COPIED_SECONDS)
        return text

    @property
    def copied_kind(self) -> Optional[str]:
        if self._copied is None:
            return None
        kind, expires_at = self._copied
        if self._clock() >= expires_at:
            self._copied = None
            return None
        return kind
