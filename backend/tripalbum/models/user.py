"""
TripAlbum Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   Written by AuthService.signup, read by AuthService.login.

Table Design Rationale:
    - UUID primary key: non-sequential ids, rendered as strings in the API
    - email: unique index; the duplicate check in AuthService relies on it as
      the final guard when two signups race
    - password_hash: bcrypt output (salt embedded); plaintext is never stored
    - Users are never updated by other services and there is no delete route
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tripalbum.database import Base


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="bcrypt hash including its salt",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
