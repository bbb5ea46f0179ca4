"""
TripAlbum Backend — Trip Service
=================================

What:  Create, list, read, update and delete trips.
Who:   Called by the /api/trips routes; PhotoService uses ensure_trip_access().

Ownership:
    Listing is always scoped by an owner id. Reads and writes by trip id
    check ownership through RequestContext only when the request carries an
    acting user (X-User-Id); otherwise any caller knowing the id may act.

Update semantics:
    PUT is a partial merge. Only the keys present in the body change, then
    the merged trip is validated again as a whole (TripDocument), so e.g.
    {"title": null} or {"status": "cancelled"} is rejected with 400.

Delete semantics:
    Photos of a trip are left in place (orphaned) unless
    settings.cascade_photo_delete is set, in which case they are removed in
    the same operation through PhotoService.delete_trip_photos().
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tripalbum.config import settings
from tripalbum.context import ANONYMOUS, RequestContext
from tripalbum.exceptions import DatabaseError, NotFoundError, ValidationError
from tripalbum.models.trip import Trip
from tripalbum.schemas.trip import (
    Budget,
    TripCreateRequest,
    TripDocument,
    TripResponse,
    TripUpdateRequest,
)

logger = logging.getLogger(__name__)


def _parse_trip_id(trip_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(trip_id))
    except ValueError:
        return None


def to_trip_response(trip: Trip) -> TripResponse:
    return TripResponse(
        id=str(trip.id),
        user_id=trip.owner_user_id,
        title=trip.title,
        destination=trip.destination,
        start_date=trip.start_date,
        end_date=trip.end_date,
        status=trip.status,
        packing_list=trip.packing_list or [],
        budget=trip.budget or Budget(),
        notes=trip.notes or "",
        created_at=trip.created_at,
        updated_at=trip.updated_at,
    )


class TripService:
    """
    Business logic for trips. Stateless; receives the session per call.
    """

    async def _find(self, db: AsyncSession, trip_id: str) -> Optional[Trip]:
        parsed = _parse_trip_id(trip_id)
        if parsed is None:
            return None
        try:
            result = await db.execute(select(Trip).where(Trip.id == parsed))
        except SQLAlchemyError as e:
            logger.error("Database error fetching trip %s: %s", trip_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the trip. Please try again.",
                context={"trip_id": trip_id, "error": str(e)},
            )
        return result.scalar_one_or_none()

    async def _load(self, db: AsyncSession, trip_id: str, context: RequestContext) -> Trip:
        trip = await self._find(db, trip_id)
        if trip is None:
            # Malformed ids are reported as unknown ids
            raise NotFoundError(resource="trip", resource_id=str(trip_id))
        context.ensure_owner(trip.owner_user_id, str(trip.id))
        return trip

    async def ensure_trip_access(
        self,
        db: AsyncSession,
        trip_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> None:
        """
        Ownership gate for photo operations on a trip id.

        Photos may reference trip ids that have no trip record; those have
        no owner to check against and are allowed.
        """
        if not context.is_authenticated:
            return
        trip = await self._find(db, trip_id)
        if trip is not None:
            context.ensure_owner(trip.owner_user_id, str(trip.id))

    async def create_trip(
        self,
        db: AsyncSession,
        payload: TripCreateRequest,
        context: RequestContext = ANONYMOUS,
    ) -> TripResponse:
        """
        Create a trip for payload.user_id.

        Defaults: status "upcoming", empty packing list, zero budget, empty notes.
        """
        context.ensure_owner(payload.user_id, "new")

        budget = payload.budget or Budget()
        trip = Trip(
            owner_user_id=payload.user_id,
            title=payload.title,
            destination=payload.destination,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status or "upcoming",
            packing_list=[item.model_dump() for item in payload.packing_list or []],
            budget=budget.model_dump(),
            notes=payload.notes or "",
        )
        try:
            db.add(trip)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating trip: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create trip",
                context={"error": str(e)},
            )

        logger.info("Trip created: %s for user %s", trip.id, trip.owner_user_id)
        return to_trip_response(trip)

    async def list_trips(
        self,
        db: AsyncSession,
        owner_user_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> List[TripResponse]:
        """All trips of one owner, ascending by start date."""
        if not owner_user_id:
            raise ValidationError(message="userId query parameter is required", field="userId")
        context.ensure_owner(owner_user_id, "*")

        try:
            result = await db.execute(
                select(Trip)
                .where(Trip.owner_user_id == owner_user_id)
                .order_by(Trip.start_date.asc(), Trip.created_at.asc())
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing trips: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve trips. Please try again.",
                context={"owner_user_id": owner_user_id, "error": str(e)},
            )
        return [to_trip_response(trip) for trip in result.scalars().all()]

    async def get_trip(
        self,
        db: AsyncSession,
        trip_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> TripResponse:
        trip = await self._load(db, trip_id, context)
        return to_trip_response(trip)

    async def update_trip(
        self,
        db: AsyncSession,
        trip_id: str,
        payload: TripUpdateRequest,
        context: RequestContext = ANONYMOUS,
    ) -> TripResponse:
        """
        Partial update followed by full re-validation.

        Raises:
            NotFoundError: unknown trip id
            ValidationError: merged trip is not a valid trip
        """
        trip = await self._load(db, trip_id, context)

        current = TripDocument(
            title=trip.title,
            destination=trip.destination,
            start_date=trip.start_date,
            end_date=trip.end_date,
            status=trip.status,
            packing_list=trip.packing_list or [],
            budget=trip.budget or Budget(),
            notes=trip.notes or "",
        )
        changes = payload.model_dump(exclude_unset=True)
        merged = {**current.model_dump(), **changes}

        try:
            document = TripDocument.model_validate(merged)
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(
                message=f"Invalid trip update: {', '.join(fields) or 'body'}",
                context={"fields": fields},
            )

        trip.title = document.title
        trip.destination = document.destination
        trip.start_date = document.start_date
        trip.end_date = document.end_date
        trip.status = document.status
        trip.packing_list = [item.model_dump() for item in document.packing_list]
        trip.budget = document.budget.model_dump()
        trip.notes = document.notes
        trip.updated_at = datetime.now(timezone.utc)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating trip %s: %s", trip_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to update trip",
                context={"trip_id": trip_id, "error": str(e)},
            )

        logger.info("Trip updated: %s (%s)", trip.id, ", ".join(sorted(changes)) or "no changes")
        return to_trip_response(trip)

    async def delete_trip(
        self,
        db: AsyncSession,
        trip_id: str,
        context: RequestContext = ANONYMOUS,
    ) -> int:
        """
        Delete a trip.

        Returns:
            Number of photos removed along with it (0 unless cascading).
        """
        trip = await self._load(db, trip_id, context)

        removed_photos = 0
        if settings.cascade_photo_delete:
            # Imported here: photo_service depends on this module
            from tripalbum.services.photo_service import photo_service
            removed_photos = await photo_service.delete_trip_photos(db, str(trip.id))

        try:
            await db.delete(trip)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting trip %s: %s", trip_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to delete trip",
                context={"trip_id": trip_id, "error": str(e)},
            )

        logger.info("Trip deleted: %s (photos removed: %d)", trip_id, removed_photos)
        return removed_photos


trip_service = TripService()
