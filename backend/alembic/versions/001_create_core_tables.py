"""Create users, trips and photos tables

Revision ID: 001
Revises: None
Create Date: 2025-01-01 00:00:00.000000+00:00

What:  Initial schema: accounts, trips with their nested packing list and
       budget documents, and photo metadata.
How:   Portable column types (Uuid, JSON, Date) so the same revision runs on
       PostgreSQL in production and SQLite in tests. Defaults are applied
       by the ORM, not by the database.

Trips reference their owner and photos reference their trip by plain
string columns; there are no foreign keys between the tables.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column(
            "password_hash",
            sa.String(128),
            nullable=False,
            comment="bcrypt hash including its salt",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique: the last guard against two concurrent signups with one email
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "trips",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            comment="One of: wishlist, upcoming, completed",
        ),
        sa.Column("packing_list", sa.JSON(), nullable=False),
        sa.Column("budget", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_trips_owner_start", "trips", ["owner_user_id", "start_date"])

    op.create_table(
        "photos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("trip_id", sa.String(64), nullable=False),
        sa.Column(
            "filename",
            sa.String(512),
            nullable=False,
            comment="On-disk name inside the trip directory",
        ),
        sa.Column(
            "original_name",
            sa.String(512),
            nullable=False,
            comment="Client-supplied filename, not sanitized",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_photos_trip_created", "photos", ["trip_id", "created_at"])


def downgrade() -> None:
    """Drop all three tables. Destructive: every row is lost."""
    op.drop_index("idx_photos_trip_created", table_name="photos")
    op.drop_table("photos")
    op.drop_index("idx_trips_owner_start", table_name="trips")
    op.drop_table("trips")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
