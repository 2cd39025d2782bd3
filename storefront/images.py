"""Menu item image resolution, placeholder fallback and decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Awaitable, Callable

import httpx
from PIL import Image

from storefront.config import IMAGE_BASE_URL, IMAGE_PLACEHOLDER_URL
from storefront.exceptions import ImageLoadError
from storefront.models import MenuItem

logger = logging.getLogger(__name__)


def image_url_for(item: MenuItem, base_url: str = IMAGE_BASE_URL) -> str:
    """Resolve the image URL of a menu item, or the placeholder when it has none."""
    if not item.image:
        return IMAGE_PLACEHOLDER_URL
    return f"{base_url}{item.image}"


@dataclass
class ImageSource:
    """Current image URL of one menu item."""

    url: str
    placeholder_url: str = IMAGE_PLACEHOLDER_URL
    swapped: bool = False

    @classmethod
    def for_item(cls, item: MenuItem, base_url: str = IMAGE_BASE_URL) -> ImageSource:
        return cls(url=image_url_for(item, base_url))

    def on_error(self) -> bool:
        """Swap to the placeholder after a load failure. Only the first call swaps."""
        if self.swapped or self.url == self.placeholder_url:
            return False
        self.url = self.placeholder_url
        self.swapped = True
        return True


class ImageLoader:
    """Fetch and decode images with a single fallback to the placeholder."""

    def __init__(self, fetch: Callable[[str], Awaitable[bytes]]) -> None:
        self._fetch = fetch

    async def load(self, source: ImageSource) -> Image.Image | None:
        try:
            return await self._load_url(source.url)
        except ImageLoadError as e:
            logger.info("image_load_failed url=%s error=%r", e.url, e.message)
            if not source.on_error():
                return None

        try:
            return await self._load_url(source.url)
        except ImageLoadError as e:
            logger.info("image_placeholder_failed url=%s error=%r", e.url, e.message)
            return None

    async def _load_url(self, url: str) -> Image.Image:
        try:
            data = await self._fetch(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ImageLoadError(f"Image request failed: {e}", url=url) from e

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (OSError, Image.DecompressionBombError) as e:
            raise ImageLoadError(f"Image could not be decoded: {e}", url=url) from e
        return image
