"""
TripAlbum Backend — Photo Route Handlers
=========================================

What:  Album endpoints under /api/photos.
Who:   Called by the gallery front-end.

Route order matters: /download/{photo_id} is declared before the
/{trip_id}/... routes so "download" is never read as a trip id.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tripalbum.config import settings
from tripalbum.context import RequestContext, get_request_context
from tripalbum.database import get_db_session
from tripalbum.schemas.common import ErrorResponse, MessageResponse
from tripalbum.schemas.photo import PhotoCountResponse, PhotoItem, PhotoUploadResponse
from tripalbum.services.file_service import IncomingFile
from tripalbum.services.photo_service import photo_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])

_limits = settings.upload_limits


@router.get(
    "/download/{photo_id}",
    response_class=FileResponse,
    responses={
        200: {"description": "Photo bytes as an attachment"},
        404: {"description": "Photo record or file not found", "model": ErrorResponse},
    },
    summary="Download a photo under its original name",
)
async def download_photo(
    photo_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> FileResponse:
    path, original_name = await photo_service.get_download(db, photo_id, context)
    logger.info("Photo download: %s", photo_id)
    return FileResponse(
        path=str(path),
        filename=original_name,
        media_type="application/octet-stream",
        content_disposition_type="attachment",
    )


@router.get(
    "/{trip_id}/count",
    response_model=PhotoCountResponse,
    summary="Number of photos in a trip",
)
async def count_photos(
    trip_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> PhotoCountResponse:
    count = await photo_service.count_photos(db, trip_id, context)
    return PhotoCountResponse(count=count)


@router.get(
    "/{trip_id}/photos",
    response_model=List[PhotoItem],
    summary="Photos of a trip, newest first",
)
async def list_photos(
    trip_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> List[PhotoItem]:
    return await photo_service.list_photos(db, trip_id, context)


@router.post(
    "/{trip_id}/upload",
    status_code=201,
    response_model=PhotoUploadResponse,
    responses={
        400: {"description": "No files, too many files, non-image or oversized file", "model": ErrorResponse},
    },
    summary="Upload photos to a trip",
    description=(
        f"Multipart field 'photos', up to {_limits.max_files} image files of at most "
        f"{_limits.max_file_size_mb:.0f}MB each. Responds 201 with the photos that were saved; "
        "files whose record could not be saved are listed in 'failed'."
    ),
)
async def upload_photos(
    trip_id: str,
    photos: Optional[List[UploadFile]] = File(default=None, description="Image files"),
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> PhotoUploadResponse:
    uploads = photos or []
    logger.info("Upload request for trip %s: %d file(s)", trip_id, len(uploads))

    incoming = [
        IncomingFile(
            original_name=upload.filename or "photo",
            content_type=upload.content_type or "",
            read=upload.read,
            size=upload.size,
        )
        for upload in uploads
    ]
    try:
        return await photo_service.upload_photos(db, trip_id, incoming, context)
    finally:
        for upload in uploads:
            await upload.close()


@router.delete(
    "/{photo_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Photo not found", "model": ErrorResponse}},
    summary="Delete a photo and its file",
)
async def delete_photo(
    photo_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> MessageResponse:
    await photo_service.delete_photo(db, photo_id, context)
    return MessageResponse(message="Photo deleted successfully")
