# services/media.py
"""Cloudinary client for submission files.

Only references (url, public id, format, resource type) are kept in the
database; the bytes live with Cloudinary. The SDK picks up its credentials
from ``CLOUDINARY_URL``, which ``config`` loads from ``.env``.
"""
import asyncio
import io
import logging
from dataclasses import dataclass
from typing import List, Optional

# Must load .env before the SDK reads CLOUDINARY_URL at import time
import config  # noqa: F401

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from models.assignment import FileReference

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60


class MediaServiceError(Exception):
    pass


@dataclass
class UploadItem:
    filename: str
    content: bytes
    content_type: str

    @property
    def is_image(self) -> bool:
        return (self.content_type or "").startswith("image/")


@dataclass
class UploadResult:
    images: List[FileReference]
    attachments: List[FileReference]
    failed: List[str]


class MediaService:
    def _ensure_configured(self):
        if not cloudinary.config().cloud_name:
            raise MediaServiceError("Cloudinary is not configured (CLOUDINARY_URL)")

    async def _call(self, func, *args, **options) -> dict:
        self._ensure_configured()
        try:
            return await run_in_threadpool(func, *args, timeout=REQUEST_TIMEOUT, **options)
        except cloudinary.exceptions.Error as e:
            raise MediaServiceError(f"Cloudinary request failed: {e}") from e

    async def upload(self, item: UploadItem, resource_type: str = "auto") -> FileReference:
        result = await self._call(
            cloudinary.uploader.upload,
            io.BytesIO(item.content),
            filename=item.filename,
            resource_type=resource_type,
        )
        return FileReference(
            url=result["secure_url"],
            public_id=result["public_id"],
            format=result.get("format"),
            resource_type=result.get("resource_type"),
        )

    async def delete(self, public_id: str, resource_type: Optional[str] = None) -> dict:
        return await self._call(
            cloudinary.uploader.destroy,
            public_id,
            resource_type=resource_type or "image",
        )

    async def upload_submission_files(self, items: List[UploadItem]) -> UploadResult:
        """Upload concurrently; images and documents are kept apart.

        A failed file is logged and skipped, the others are still returned.
        """
        async def upload_one(item: UploadItem):
            return await self.upload(item, resource_type="image" if item.is_image else "raw")

        results = await asyncio.gather(
            *(upload_one(item) for item in items), return_exceptions=True
        )

        outcome = UploadResult(images=[], attachments=[], failed=[])
        for item, result in zip(items, results):
            if isinstance(result, MediaServiceError):
                logger.error("Error uploading file %s: %s", item.filename, result)
                outcome.failed.append(item.filename)
            elif isinstance(result, BaseException):
                raise result
            elif item.is_image:
                outcome.images.append(result)
            else:
                outcome.attachments.append(result)
        return outcome
