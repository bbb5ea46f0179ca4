"""
TripAlbum Backend — Photo Service
==================================

What:  Upload, list, count, delete and download of trip photos.
How:   Composes FileService (bytes on disk) with the photos table (metadata).

Upload flow (POST /api/photos/{trip_id}/upload):
    ┌──────────┐    ┌──────────────┐    ┌───────────────────────────┐
    │ validate │───▶│ write files  │───▶│ per file: insert + commit │
    │  (all)   │    │ (FileService)│    │ failure → remove its file │
    └──────────┘    └──────────────┘    └───────────────────────────┘

    A record is committed per file so one failing insert does not undo the
    photos already saved. The response lists only saved photos; the status
    is 201 even when some (or all) inserts failed, and `failed` names them.

Delete flow:
    record lookup → remove file (missing file is fine) → delete record.
    The file location is derived from the stored trip_id and filename.

Trip ids:
    Path trip ids go through canonical_trip_id() before any store or query,
    so an uppercase UUID and its lowercase form address the same album and
    the same directory, and cascade deletion finds every photo of a trip.
"""

import logging
import uuid
from pathlib import Path
from typing import List, Sequence, Tuple
from urllib.parse import quote

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tripalbum.config import settings
from tripalbum.context import ANONYMOUS, RequestContext
from tripalbum.exceptions import DatabaseError, NotFoundError
from tripalbum.models.photo import Photo
from tripalbum.schemas.photo import PhotoItem, PhotoUploadResponse
from tripalbum.services.file_service import IncomingFile, file_service
from tripalbum.services.trip_service import trip_service

logger = logging.getLogger(__name__)


def canonical_trip_id(trip_id: str) -> str:
    """
    One spelling per trip: ids that parse as a UUID are stored and queried in
    their lowercase hyphenated form, the form Trip.id renders as. Other ids
    are kept as given.
    """
    try:
        return str(uuid.UUID(str(trip_id)))
    except ValueError:
        return trip_id


def photo_url(trip_id: str, filename: str) -> str:
    """Public URL of a stored photo, matching the /uploads static mount."""
    return f"{settings.public_base_url}/uploads/{quote(trip_id)}/{quote(filename)}"


def to_photo_item(photo: Photo) -> PhotoItem:
    return PhotoItem(
        id=str(photo.id),
        filename=photo.filename,
        original_name=photo.original_name,
        upload_date=photo.created_at,
        url=photo_url(photo.trip_id, photo.filename),
    )


class PhotoService:
    """
    Business logic for trip photos. Stateless; receives the session per call.
    """

    async def upload_photos(
        self,
        db: AsyncSession,
        trip_id: str,
        files: Sequence[IncomingFile],
        context: RequestContext = ANONYMOUS,
    ) -> PhotoUploadResponse:
        """
        Store uploaded files and persist one Photo record per file.

        Raises:
            ValidationError: no files, too many, non-image, too large (nothing kept)
            FileStorageError: disk write failed (nothing kept)
            ForbiddenError: acting user does not own the trip
        """
        trip_id = canonical_trip_id(trip_id)
        await trip_service.ensure_trip_access(db, trip_id, context)

        stored = await file_service.store_uploads(trip_id, files)
        logger.info("Stored %d file(s) for trip %s", len(stored), trip_id)

        saved: List[PhotoItem] = []
        failed: List[str] = []
        for stored_file in stored:
            photo = Photo(
                trip_id=trip_id,
                filename=stored_file.filename,
                original_name=stored_file.original_name,
            )
            try:
                db.add(photo)
                await db.commit()
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to save photo record for %s: %s",
                    stored_file.original_name,
                    str(e),
                )
                await db.rollback()
                await file_service.remove_file(stored_file.path)
                failed.append(stored_file.original_name)
                continue
            saved.append(to_photo_item(photo))

        if failed:
            logger.warning(
                "Upload to trip %s partially failed: %d saved, %d failed",
                trip_id,
                len(saved),
                len(failed),
            )
            message = f"{len(saved)} of {len(stored)} photos uploaded; {len(failed)} could not be saved"
        else:
            message = "Photos uploaded successfully"

        return PhotoUploadResponse(
            message=message,
            photos=saved,
            count=len(saved),
            failed=failed,
        )

    async def list_photos(
        self,
        db: AsyncSession,
        trip_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> List[PhotoItem]:
        """All photos of a trip, newest first, each with its derived URL."""
        trip_id = canonical_trip_id(trip_id)
        await trip_service.ensure_trip_access(db, trip_id, context)
        try:
            result = await db.execute(
                select(Photo)
                .where(Photo.trip_id == trip_id)
                .order_by(Photo.created_at.desc())
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing photos for %s: %s", trip_id, str(e))
            raise DatabaseError(
                message="Failed to fetch photos",
                context={"trip_id": trip_id, "error": str(e)},
            )
        photos = [to_photo_item(photo) for photo in result.scalars().all()]
        logger.debug("Found %d photos for trip %s", len(photos), trip_id)
        return photos

    async def count_photos(
        self,
        db: AsyncSession,
        trip_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> int:
        """COUNT(*) of a trip's photos, for summary cards."""
        trip_id = canonical_trip_id(trip_id)
        await trip_service.ensure_trip_access(db, trip_id, context)
        try:
            result = await db.execute(
                select(func.count(Photo.id)).where(Photo.trip_id == trip_id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error counting photos for %s: %s", trip_id, str(e))
            raise DatabaseError(
                message="Failed to get photo count",
                context={"trip_id": trip_id, "error": str(e)},
            )
        return result.scalar() or 0

    async def _load(self, db: AsyncSession, photo_id: str) -> Photo:
        try:
            parsed = uuid.UUID(str(photo_id))
        except ValueError:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))

        try:
            result = await db.execute(select(Photo).where(Photo.id == parsed))
        except SQLAlchemyError as e:
            logger.error("Database error fetching photo %s: %s", photo_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the photo. Please try again.",
                context={"photo_id": photo_id, "error": str(e)},
            )
        photo = result.scalar_one_or_none()
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(photo_id))
        return photo

    async def delete_photo(
        self,
        db: AsyncSession,
        photo_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> None:
        """
        Remove a photo's file, then its record.

        A file that is already missing is logged and the record is deleted anyway.
        """
        photo = await self._load(db, photo_id)
        await trip_service.ensure_trip_access(db, photo.trip_id, context)

        path = file_service.photo_path(photo.trip_id, photo.filename)
        if not await file_service.remove_file(path):
            logger.info("File for photo %s not removed, proceeding with record deletion", photo_id)

        try:
            await db.delete(photo)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting photo %s: %s", photo_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to delete photo",
                context={"photo_id": photo_id, "error": str(e)},
            )
        logger.info("Photo deleted: %s (trip %s)", photo_id, photo.trip_id)

    async def get_download(
        self,
        db: AsyncSession,
        photo_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> Tuple[Path, str]:
        """
        Resolve a photo to (file path, original name) for an attachment download.

        Raises:
            NotFoundError: no record, or the record's file is missing on disk
        """
        photo = await self._load(db, photo_id)
        await trip_service.ensure_trip_access(db, photo.trip_id, context)

        path = file_service.photo_path(photo.trip_id, photo.filename)
        if not path.is_file():
            logger.warning("Photo %s has a record but no file at %s", photo_id, path)
            raise NotFoundError(resource="photo file", resource_id=str(photo_id))
        return path, photo.original_name

    async def delete_trip_photos(self, db: AsyncSession, trip_id: str) -> int:
        """
        Remove every photo of a trip: files first, then records, then the
        (now empty) trip directory. Used when trip deletion cascades.
        """
        trip_id = canonical_trip_id(trip_id)
        try:
            result = await db.execute(select(Photo).where(Photo.trip_id == trip_id))
            photos = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error loading photos of trip %s: %s", trip_id, str(e))
            raise DatabaseError(
                message="Failed to delete the trip's photos",
                context={"trip_id": trip_id, "error": str(e)},
            )

        for photo in photos:
            await file_service.remove_file(file_service.photo_path(trip_id, photo.filename))

        try:
            await db.execute(delete(Photo).where(Photo.trip_id == trip_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting photos of trip %s: %s", trip_id, str(e))
            raise DatabaseError(
                message="Failed to delete the trip's photos",
                context={"trip_id": trip_id, "error": str(e)},
            )

        await file_service.remove_trip_dir(trip_id)
        return len(photos)


photo_service = PhotoService()
