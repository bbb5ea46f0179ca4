"""
TripAlbum Backend — Photo SQLAlchemy Model
===========================================

What:  ORM model for the `photos` table (metadata of one stored image).
Who:   Written and deleted only by PhotoService.

Consistency rule:
    A row is inserted only after its file is on disk at
    <upload_root>/<trip_id>/<filename>, and the file is removed before the row
    is deleted. A crash between the two steps can leave a file with no row,
    never a row whose file was not yet written.

    original_name is what the client sent and is only used for the
    download Content-Disposition; the on-disk name is `filename`.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tripalbum.database import Base


class Photo(Base):
    """A stored image belonging to one trip."""

    __tablename__ = "photos"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    trip_id: Mapped[str] = mapped_column(String(64), nullable=False)

    filename: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="On-disk name inside the trip directory",
    )

    original_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Client-supplied filename, not sanitized",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Album view lists a trip's photos newest first; count uses the same prefix
    __table_args__ = (
        Index("idx_photos_trip_created", "trip_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, trip_id='{self.trip_id}', filename='{self.filename}')>"
