"""
TripAlbum Backend — Trip Service Tests
=======================================

What:  TripService against a real SQLite session (db_session fixture).

What we test:
    ✅ Creation defaults (status, packing list, budget, notes)
    ✅ Listing scoped by owner, ascending start date
    ✅ Partial update merges and re-validates the whole trip
    ✅ Unknown and malformed ids raise NotFoundError
    ✅ Ownership checks only when an acting user is present
    ✅ Database failures surface as DatabaseError
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from tripalbum.context import RequestContext
from tripalbum.exceptions import DatabaseError, ForbiddenError, NotFoundError, ValidationError
from tripalbum.schemas.trip import TripCreateRequest, TripUpdateRequest
from tripalbum.services.trip_service import TripService


def _create_request(**overrides):
    data = {
        "title": "Paris",
        "destination": "France",
        "startDate": "2025-01-01",
        "endDate": "2025-01-10",
        "userId": "u1",
    }
    data.update(overrides)
    return TripCreateRequest.model_validate(data)


class TestCreateTrip:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_defaults_applied(self, db_session):
        trip = await self.service.create_trip(db_session, _create_request())

        assert trip.status == "upcoming"
        assert trip.packing_list == []
        assert trip.budget.total == 0 and trip.budget.spent == 0
        assert trip.notes == ""
        assert trip.user_id == "u1"
        assert trip.start_date == date(2025, 1, 1)
        assert trip.id

    @pytest.mark.asyncio
    async def test_explicit_values_kept(self, db_session):
        request = _create_request(
            status="wishlist",
            packingList=[{"item": "passport", "packed": True}, {"item": "charger"}],
            budget={"total": 1500, "spent": 200},
            notes="Louvre on day 2",
        )
        trip = await self.service.create_trip(db_session, request)

        assert trip.status == "wishlist"
        assert [(p.item, p.packed) for p in trip.packing_list] == [
            ("passport", True),
            ("charger", False),
        ]
        assert trip.budget.total == 1500
        assert trip.notes == "Louvre on day 2"

    @pytest.mark.asyncio
    async def test_acting_user_must_match_owner(self, db_session):
        with pytest.raises(ForbiddenError):
            await self.service.create_trip(
                db_session, _create_request(), RequestContext(user_id="u2")
            )

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        with pytest.raises(DatabaseError, match="Failed to create trip"):
            await self.service.create_trip(mock_db_session, _create_request())


class TestListTrips:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_scoped_and_sorted_by_start_date(self, db_session):
        await self.service.create_trip(db_session, _create_request(title="Late", startDate="2025-06-01", endDate="2025-06-05"))
        await self.service.create_trip(db_session, _create_request(title="Early", startDate="2024-03-01", endDate="2024-03-05"))
        await self.service.create_trip(db_session, _create_request(title="Other", userId="u2"))

        trips = await self.service.list_trips(db_session, "u1")

        assert [t.title for t in trips] == ["Early", "Late"]

    @pytest.mark.asyncio
    async def test_unknown_owner_gets_empty_list(self, db_session):
        assert await self.service.list_trips(db_session, "nobody") == []

    @pytest.mark.asyncio
    async def test_missing_owner_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.list_trips(db_session, "")

    @pytest.mark.asyncio
    async def test_listing_someone_else_forbidden(self, db_session):
        with pytest.raises(ForbiddenError):
            await self.service.list_trips(db_session, "u1", RequestContext(user_id="u2"))


class TestGetTrip:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_found(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        fetched = await self.service.get_trip(db_session, created.id)
        assert fetched.id == created.id
        assert fetched.title == "Paris"

    @pytest.mark.asyncio
    async def test_unknown_id(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_trip(db_session, "6f9619ff-8b86-d011-b42d-00c04fc964ff")

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_trip(db_session, "not-a-uuid")

    @pytest.mark.asyncio
    async def test_owner_check(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        await self.service.get_trip(db_session, created.id, RequestContext(user_id="u1"))
        with pytest.raises(ForbiddenError):
            await self.service.get_trip(db_session, created.id, RequestContext(user_id="u2"))


class TestUpdateTrip:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session):
        created = await self.service.create_trip(db_session, _create_request(notes="keep me"))

        updated = await self.service.update_trip(
            db_session,
            created.id,
            TripUpdateRequest.model_validate({"status": "completed"}),
        )

        assert updated.status == "completed"
        assert updated.title == "Paris"
        assert updated.notes == "keep me"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_nested_documents_replaced(self, db_session):
        created = await self.service.create_trip(
            db_session,
            _create_request(packingList=[{"item": "socks"}]),
        )
        updated = await self.service.update_trip(
            db_session,
            created.id,
            TripUpdateRequest.model_validate({
                "packingList": [{"item": "socks", "packed": True}, {"item": "hat"}],
                "budget": {"total": 900},
            }),
        )
        assert [(p.item, p.packed) for p in updated.packing_list] == [("socks", True), ("hat", False)]
        assert updated.budget.total == 900
        assert updated.budget.spent == 0

    @pytest.mark.asyncio
    async def test_null_required_field_rejected(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        with pytest.raises(ValidationError, match="title"):
            await self.service.update_trip(
                db_session,
                created.id,
                TripUpdateRequest.model_validate({"title": None}),
            )

    @pytest.mark.asyncio
    async def test_unknown_id(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_trip(
                db_session,
                "6f9619ff-8b86-d011-b42d-00c04fc964ff",
                TripUpdateRequest.model_validate({"title": "x"}),
            )


class TestDeleteTrip:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_deleted_trip_is_gone(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        removed = await self.service.delete_trip(db_session, created.id)

        assert removed == 0
        with pytest.raises(NotFoundError):
            await self.service.get_trip(db_session, created.id)

    @pytest.mark.asyncio
    async def test_unknown_id(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete_trip(db_session, "6f9619ff-8b86-d011-b42d-00c04fc964ff")

    @pytest.mark.asyncio
    async def test_cascade_calls_photo_cleanup(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())

        with patch("tripalbum.services.trip_service.settings") as mock_settings, \
             patch("tripalbum.services.photo_service.photo_service.delete_trip_photos") as mock_cleanup:
            mock_settings.cascade_photo_delete = True
            mock_cleanup.return_value = 3
            removed = await self.service.delete_trip(db_session, created.id)

        assert removed == 3
        mock_cleanup.assert_awaited_once_with(db_session, created.id)


class TestEnsureTripAccess:
    def setup_method(self):
        self.service = TripService()

    @pytest.mark.asyncio
    async def test_anonymous_never_queries(self, mock_db_session):
        await self.service.ensure_trip_access(mock_db_session, "anything")
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_trip_without_record_allowed(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        await self.service.ensure_trip_access(
            mock_db_session,
            "6f9619ff-8b86-d011-b42d-00c04fc964ff",
            RequestContext(user_id="u1"),
        )

    @pytest.mark.asyncio
    async def test_foreign_trip_forbidden(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        with pytest.raises(ForbiddenError):
            await self.service.ensure_trip_access(db_session, created.id, RequestContext(user_id="u2"))

    @pytest.mark.asyncio
    async def test_forbidden_context_names_request(self, db_session):
        created = await self.service.create_trip(db_session, _create_request())
        context = RequestContext(user_id="u2", request_id="req-42")

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.ensure_trip_access(db_session, created.id, context)

        assert exc_info.value.context == {
            "trip_id": created.id,
            "acting_user_id": "u2",
            "request_id": "req-42",
        }
