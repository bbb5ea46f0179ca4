"""
TripAlbum Backend — Photo Schemas
==================================

What:  API contract for /api/photos.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from tripalbum.schemas.common import CamelModel


class PhotoItem(CamelModel):
    """
    One album entry.

    url is derived, never stored: <public_base_url>/uploads/<trip_id>/<filename>,
    the path StaticFiles serves the upload root under.
    """
    id: str
    filename: str
    original_name: str
    upload_date: datetime
    url: str


class PhotoUploadResponse(CamelModel):
    """
    Body of POST /api/photos/{trip_id}/upload (always 201).

    photos/count cover only photos whose record was saved; failed lists the
    original names of files that were written but whose record was not, and
    whose file has been removed again.
    """
    message: str
    photos: List[PhotoItem]
    count: int
    failed: List[str] = Field(default_factory=list)


class PhotoCountResponse(BaseModel):
    count: int
