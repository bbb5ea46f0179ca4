"""
TripAlbum Backend — Trip SQLAlchemy Model
==========================================

What:  ORM model for the `trips` table.
Who:   Used by TripService for CRUD and by PhotoService for ownership checks.

Table Design Rationale:
    - owner_user_id is a plain string with no foreign key. Trips are scoped
      by whatever user id the client supplies; the users table is not
      consulted when a trip is created.
    - packing_list and budget are nested documents, stored as JSON columns
      and always replaced as a whole on update.
    - Photos reference trips by id string only; deleting a trip leaves its
      photos in place unless CASCADE_PHOTO_DELETE is enabled.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, Date, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tripalbum.database import Base

TRIP_STATUSES = ("wishlist", "upcoming", "completed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Trip(Base):
    """A planned or past journey owned by one user."""

    __tablename__ = "trips"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="upcoming",
        comment="One of: wishlist, upcoming, completed",
    )

    # [{"item": str, "packed": bool}, ...] in display order
    packing_list: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    # {"total": number, "spent": number}
    budget: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: {"total": 0, "spent": 0},
    )

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Listing is always "trips of one owner ordered by start date"
    __table_args__ = (
        Index("idx_trips_owner_start", "owner_user_id", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, title='{self.title}', status='{self.status}')>"
