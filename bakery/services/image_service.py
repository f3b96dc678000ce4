"""Product image uploads to Cloudinary with an inline fallback."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path

import cloudinary
import cloudinary.uploader

from ..config import Settings, get_settings
from ..errors import ImageTooLargeError

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 2 * 1024 * 1024


def data_url(data: bytes, filename: str) -> str:
    mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


class ImageService:
    """Turns an uploaded image into a URL to store on the product."""

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._folder = settings.cloudinary_folder
        self._configured = settings.cloudinary_enabled
        if self._configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    async def upload(self, data: bytes, filename: str) -> str:
        """Upload an image and return its URL.

        Raises ImageTooLargeError above the size limit. Any other failure
        falls back to an inline data URL.
        """
        if len(data) > MAX_IMAGE_BYTES:
            raise ImageTooLargeError(len(data), MAX_IMAGE_BYTES)

        if not self._configured:
            logger.info("Cloudinary not configured, storing %s inline", filename)
            return data_url(data, filename)

        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                data,
                public_id=Path(filename).stem,
                folder=self._folder,
                overwrite=True,
                resource_type="image",
            )
            logger.info("Photo uploaded to Cloudinary: %s -> %s", filename, result.get("secure_url"))
            return result["secure_url"]
        except Exception as e:
            logger.exception("Failed to upload photo to Cloudinary: %s", e)
            return data_url(data, filename)
