"""
TripAlbum Backend — Photo File Storage Service
===============================================

What:  Upload validation, on-disk storage and cleanup of trip photos.
Why:   Keeps every file system operation behind one class so PhotoService
       only deals with "stored file" values and paths.
Who:   Called by PhotoService (upload, delete, download, cascade).

Directory Structure:
    uploads/
    └── <trip_id>/
        ├── 1735689600000-9f2c41ab07-beach.jpg
        └── 1735689600123-0c7e55d1fa-sunset.png

    The same tree is served read-only under /uploads by StaticFiles, so
    <trip_id>/<filename> doubles as the public URL path of a photo.

Upload pipeline (one request):
    1. validate_uploads(): count, declared content type, declared size.
       Any failure rejects the whole request before a byte is written.
    2. ensure_trip_dir(): mkdir(parents=True, exist_ok=True). Two uploads
       racing on the same new trip both succeed.
    3. Each file is streamed to disk in chunks. The size limit is enforced
       again on the bytes actually received; exceeding it, or an OSError,
       removes the files already written for this request.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

import aiofiles

from tripalbum.config import UploadLimits, settings
from tripalbum.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Chunk size for streaming uploads to disk
CHUNK_SIZE = 1024 * 1024

# Trip ids become directory names; these can never be used as one
_FORBIDDEN_SEGMENTS = {"", ".", ".."}

# Same width as photos.trip_id
MAX_TRIP_ID_LENGTH = 64


@dataclass
class IncomingFile:
    """
    One file part of a multipart upload, independent of the web framework.

    read: async callable returning up to n bytes, b"" at end of stream
          (Starlette's UploadFile.read fits directly).
    size: declared size if the transport knows it, else None.
    """

    original_name: str
    content_type: str
    read: Callable[[int], Awaitable[bytes]]
    size: Optional[int] = None


@dataclass
class StoredFile:
    """A file that is on disk in its trip directory."""

    trip_id: str
    filename: str
    original_name: str
    path: Path
    size: int


class FileService:
    """
    Manages the upload root and the per-trip photo directories.

    The upload root is created on construction; trip directories are created
    lazily on the first upload to a trip.
    """

    def __init__(
        self,
        upload_root: Optional[str] = None,
        limits: Optional[UploadLimits] = None,
    ):
        """
        Args:
            upload_root: Override settings.upload_root (used in tests).
            limits: Override settings.upload_limits (used in tests).
        """
        self.upload_root = Path(upload_root or settings.upload_root).resolve()
        self.limits = limits or settings.upload_limits
        self.upload_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_root=%s", self.upload_root)

    # ── Paths ─────────────────────────────────────────────────────────────

    def trip_dir(self, trip_id: str) -> Path:
        """
        Directory holding a trip's photos.

        Raises:
            ValidationError if the trip id cannot be used as a single
            directory name under the upload root.
        """
        if (
            trip_id in _FORBIDDEN_SEGMENTS
            or "/" in trip_id
            or "\\" in trip_id
            or "\x00" in trip_id
            or len(trip_id) > MAX_TRIP_ID_LENGTH
        ):
            raise ValidationError(
                message=f"Invalid trip id '{trip_id}'",
                field="trip_id",
            )
        return self.upload_root / trip_id

    def photo_path(self, trip_id: str, filename: str) -> Path:
        """Deterministic location of a stored photo: <root>/<trip_id>/<filename>."""
        return self.trip_dir(trip_id) / filename

    # ── Validation ────────────────────────────────────────────────────────

    def validate_uploads(self, files: Sequence[IncomingFile]) -> None:
        """
        Check a whole upload before anything is written.

        Raises:
            ValidationError: no files, too many files, a non-image file, or a
            file whose declared size is over the limit.
        """
        if not files:
            raise ValidationError(message="No files uploaded", field="photos")

        if len(files) > self.limits.max_files:
            raise ValidationError(
                message=f"Too many files. At most {self.limits.max_files} photos can be uploaded at once.",
                field="photos",
                context={"max_files": self.limits.max_files, "received": len(files)},
            )

        for incoming in files:
            content_type = (incoming.content_type or "").lower()
            if not content_type.startswith("image/"):
                raise ValidationError(
                    message="Only image files are allowed!",
                    field="photos",
                    context={"filename": incoming.original_name, "content_type": incoming.content_type},
                )
            if incoming.size is not None and incoming.size > self.limits.max_file_size:
                raise self._too_large(incoming.original_name)

    def _too_large(self, original_name: str) -> ValidationError:
        return ValidationError(
            message=(
                f"File '{original_name}' exceeds the maximum size of "
                f"{self.limits.max_file_size_mb:.0f}MB."
            ),
            field="photos",
            context={"filename": original_name, "max_size": self.limits.max_file_size},
        )

    # ── Storage ───────────────────────────────────────────────────────────

    @staticmethod
    def generate_filename(original_name: str) -> str:
        """
        <epoch millis>-<random hex>-<original basename>.

        Directory components of the client-supplied name are dropped so the
        file always lands inside its trip directory.
        """
        basename = Path(original_name.replace("\\", "/")).name or "photo"
        millis = int(time.time() * 1000)
        return f"{millis}-{secrets.token_hex(5)}-{basename}"

    async def ensure_trip_dir(self, trip_id: str) -> Path:
        directory = self.trip_dir(trip_id)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create trip directory %s: %s", directory, str(e))
            raise FileStorageError(
                message="Failed to prepare photo storage. Please try again.",
                context={"path": str(directory), "os_error": str(e)},
            )
        return directory

    async def _write(self, directory: Path, trip_id: str, incoming: IncomingFile) -> StoredFile:
        filename = self.generate_filename(incoming.original_name)
        path = directory / filename
        written = 0
        try:
            async with aiofiles.open(path, "wb") as f:
                while True:
                    chunk = await incoming.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.limits.max_file_size:
                        raise self._too_large(incoming.original_name)
                    await f.write(chunk)
        except ValidationError:
            await self.remove_file(path)
            raise
        except OSError as e:
            await self.remove_file(path)
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded photo. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("File stored: %s/%s (%d bytes)", trip_id, filename, written)
        return StoredFile(
            trip_id=trip_id,
            filename=filename,
            original_name=incoming.original_name,
            path=path,
            size=written,
        )

    async def store_uploads(self, trip_id: str, files: Sequence[IncomingFile]) -> List[StoredFile]:
        """
        Validate then write every file of one upload into the trip directory.

        Returns:
            StoredFile per input, in input order.

        Raises:
            ValidationError: see validate_uploads(), or an actual size over
                the limit while streaming.
            FileStorageError: directory creation or write failed.
            In both streaming cases the files already written for this
            request are removed before the error propagates.
        """
        self.validate_uploads(files)
        directory = await self.ensure_trip_dir(trip_id)

        stored: List[StoredFile] = []
        try:
            for incoming in files:
                stored.append(await self._write(directory, trip_id, incoming))
        except (ValidationError, FileStorageError):
            for done in stored:
                await self.remove_file(done.path)
            raise
        return stored

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def remove_file(self, file_path: Path) -> bool:
        """
        Best-effort delete of one file.

        Returns:
            True if a file was removed, False if it was already gone or
            could not be removed. Never raises; failures are logged.
        """
        path = Path(file_path)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Removed file: %s", path.name)
                return True
            logger.info("File already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to remove file %s: %s", path, str(e))
        return False

    async def remove_trip_dir(self, trip_id: str) -> None:
        """Remove a trip directory if it is empty; leftovers are logged and kept."""
        directory = self.trip_dir(trip_id)
        try:
            directory.rmdir()
            logger.info("Removed trip directory: %s", trip_id)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Trip directory %s not removed: %s", directory, str(e))


# Singleton: upload root and limits are fixed for the process lifetime
file_service = FileService()
