# routers/media.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from config import MAX_UPLOAD_SIZE
from dependencies import get_media_service
from errors import BadRequest, ServerError
from models.assignment import FileReference
from schemas.assignment import MessageResponse
from schemas.media import MediaDeleteRequest
from services.media import MediaService, MediaServiceError, UploadItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["Media"])


@router.post("/upload", response_model=FileReference)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    media: MediaService = Depends(get_media_service)
):
    """Store a single file with the media host and return its reference"""
    if not file or not file.filename:
        raise BadRequest("Tidak ada file yang diunggah")

    data = await file.read()
    if len(data) > MAX_UPLOAD_SIZE:
        raise BadRequest(f"Ukuran file {file.filename} melebihi batas")

    try:
        return await media.upload(UploadItem(
            filename=file.filename,
            content=data,
            content_type=file.content_type or "application/octet-stream"
        ))
    except MediaServiceError as e:
        logger.error("Media upload error: %s", e)
        raise ServerError("Gagal mengunggah file")


@router.delete("/delete", response_model=MessageResponse)
async def delete_media(
    request: MediaDeleteRequest,
    media: MediaService = Depends(get_media_service)
):
    if not request.public_id:
        raise BadRequest("Public ID diperlukan")

    try:
        await media.delete(request.public_id, request.resource_type)
    except MediaServiceError as e:
        logger.error("Media delete error: %s", e)
        raise ServerError("Gagal menghapus file")

    return MessageResponse(message="Media berhasil dihapus")
