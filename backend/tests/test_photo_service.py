"""
TripAlbum Backend — Photo Service Tests
========================================

What:  PhotoService with a real SQLite session and a FileService rooted in
       tmp_path (patched into the photo_service module).

What we test:
    ✅ Upload writes files then one record per file, URLs derived
    ✅ Invalid uploads create neither files nor records
    ✅ A failing record insert removes its file and is reported in `failed`
    ✅ List is newest first, count matches
    ✅ Delete removes file and record, tolerates a missing file
    ✅ Download resolves path and original name
    ✅ Cascade cleanup removes every photo of a trip, whatever the id casing
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from tripalbum.config import UploadLimits
from tripalbum.exceptions import NotFoundError, ValidationError
from tripalbum.services.file_service import FileService
from tripalbum.services.photo_service import PhotoService, canonical_trip_id, photo_url

TRIP_ID = "0b8f7a4e-3c1d-4e2f-9a6b-5c4d3e2f1a0b"


@pytest.fixture
def files(tmp_path):
    service = FileService(
        upload_root=str(tmp_path / "uploads"),
        limits=UploadLimits(max_file_size=1024, max_files=10),
    )
    with patch("tripalbum.services.photo_service.file_service", service):
        yield service


@pytest.fixture
def jpeg(make_upload):
    def build(name, data=b"\xff\xd8jpeg\xff\xd9"):
        return make_upload(name, "image/jpeg", data)
    return build


class TestPhotoUrl:
    def test_site_relative_by_default(self):
        assert photo_url("trip-1", "1-ab-beach.jpg") == "/uploads/trip-1/1-ab-beach.jpg"

    def test_reserved_characters_quoted(self):
        assert photo_url("t", "1-ab-my photo#1.jpg") == "/uploads/t/1-ab-my%20photo%231.jpg"

    def test_public_base_url_prefix(self):
        with patch("tripalbum.services.photo_service.settings") as mock_settings:
            mock_settings.public_base_url = "https://cdn.example.com"
            assert photo_url("t", "f.jpg") == "https://cdn.example.com/uploads/t/f.jpg"


class TestUpload:
    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_upload_creates_files_and_records(self, db_session, files, jpeg):
        result = await self.service.upload_photos(
            db_session, TRIP_ID, [jpeg("a.jpg"), jpeg("b.jpg")]
        )

        assert result.message == "Photos uploaded successfully"
        assert result.count == 2
        assert result.failed == []
        assert {p.original_name for p in result.photos} == {"a.jpg", "b.jpg"}
        for photo in result.photos:
            assert photo.url == f"/uploads/{TRIP_ID}/{photo.filename}"
            assert files.photo_path(TRIP_ID, photo.filename).is_file()

        assert await self.service.count_photos(db_session, TRIP_ID) == 2

    @pytest.mark.asyncio
    async def test_invalid_upload_creates_nothing(self, db_session, files, jpeg, make_upload):
        bad = make_upload("doc.pdf", "application/pdf", b"%PDF")
        with pytest.raises(ValidationError, match="Only image files are allowed"):
            await self.service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg"), bad])

        assert await self.service.count_photos(db_session, TRIP_ID) == 0
        assert not files.trip_dir(TRIP_ID).exists()

    @pytest.mark.asyncio
    async def test_no_files_rejected(self, db_session, files):
        with pytest.raises(ValidationError, match="No files uploaded"):
            await self.service.upload_photos(db_session, TRIP_ID, [])

    @pytest.mark.asyncio
    async def test_failed_insert_removes_file(self, db_session, files, jpeg):
        real_commit = db_session.commit
        calls = []

        async def flaky_commit():
            calls.append(1)
            if len(calls) == 2:
                raise OperationalError("INSERT", {}, Exception("db down"))
            await real_commit()

        with patch.object(db_session, "commit", side_effect=flaky_commit):
            result = await self.service.upload_photos(
                db_session, TRIP_ID, [jpeg("kept.jpg"), jpeg("lost.jpg")]
            )

        assert result.count == 1
        assert result.failed == ["lost.jpg"]
        assert result.message == "1 of 2 photos uploaded; 1 could not be saved"
        assert await self.service.count_photos(db_session, TRIP_ID) == 1
        on_disk = [p.name for p in files.trip_dir(TRIP_ID).iterdir()]
        assert len(on_disk) == 1 and on_disk[0].endswith("-kept.jpg")


class TestListAndCount:
    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, files, jpeg):
        await self.service.upload_photos(db_session, TRIP_ID, [jpeg("first.jpg")])
        await asyncio.sleep(0.01)
        await self.service.upload_photos(db_session, TRIP_ID, [jpeg("second.jpg")])

        photos = await self.service.list_photos(db_session, TRIP_ID)

        assert [p.original_name for p in photos] == ["second.jpg", "first.jpg"]

    @pytest.mark.asyncio
    async def test_trips_are_isolated(self, db_session, files, jpeg):
        await self.service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg")])
        assert await self.service.list_photos(db_session, "other-trip") == []
        assert await self.service.count_photos(db_session, "other-trip") == 0


class TestDeleteAndDownload:
    def setup_method(self):
        self.service = PhotoService()

    @pytest.mark.asyncio
    async def test_delete_removes_file_and_record(self, db_session, files, jpeg):
        uploaded = await self.service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg")])
        photo = uploaded.photos[0]

        await self.service.delete_photo(db_session, photo.id)

        assert not files.photo_path(TRIP_ID, photo.filename).exists()
        assert await self.service.count_photos(db_session, TRIP_ID) == 0

    @pytest.mark.asyncio
    async def test_delete_with_missing_file_still_removes_record(self, db_session, files, jpeg):
        uploaded = await self.service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg")])
        photo = uploaded.photos[0]
        files.photo_path(TRIP_ID, photo.filename).unlink()

        await self.service.delete_photo(db_session, photo.id)

        assert await self.service.count_photos(db_session, TRIP_ID) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("photo_id", ["6f9619ff-8b86-d011-b42d-00c04fc964ff", "garbage"])
    async def test_delete_unknown(self, db_session, files, photo_id):
        with pytest.raises(NotFoundError):
            await self.service.delete_photo(db_session, photo_id)

    @pytest.mark.asyncio
    async def test_download_resolves_original_name(self, db_session, files, jpeg):
        uploaded = await self.service.upload_photos(db_session, TRIP_ID, [jpeg("Eiffel Tower.jpg")])
        photo = uploaded.photos[0]

        path, original_name = await self.service.get_download(db_session, photo.id)

        assert original_name == "Eiffel Tower.jpg"
        assert path == files.photo_path(TRIP_ID, photo.filename)

    @pytest.mark.asyncio
    async def test_download_missing_file(self, db_session, files, jpeg):
        uploaded = await self.service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg")])
        photo = uploaded.photos[0]
        files.photo_path(TRIP_ID, photo.filename).unlink()

        with pytest.raises(NotFoundError):
            await self.service.get_download(db_session, photo.id)


class TestDeleteTripPhotos:
    @pytest.mark.asyncio
    async def test_removes_records_files_and_directory(self, db_session, files, jpeg):
        service = PhotoService()
        await service.upload_photos(db_session, TRIP_ID, [jpeg("a.jpg"), jpeg("b.jpg")])
        await service.upload_photos(db_session, "other-trip", [jpeg("c.jpg")])

        removed = await service.delete_trip_photos(db_session, TRIP_ID)

        assert removed == 2
        assert await service.count_photos(db_session, TRIP_ID) == 0
        assert await service.count_photos(db_session, "other-trip") == 1
        assert not files.trip_dir(TRIP_ID).exists()

    @pytest.mark.asyncio
    async def test_uppercase_trip_id_uploads_are_removed(self, db_session, files, jpeg):
        service = PhotoService()
        uploaded = await service.upload_photos(db_session, TRIP_ID.upper(), [jpeg("a.jpg")])

        assert uploaded.photos[0].url.startswith(f"/uploads/{TRIP_ID}/")
        assert await service.count_photos(db_session, TRIP_ID) == 1

        assert await service.delete_trip_photos(db_session, TRIP_ID) == 1
        assert await service.count_photos(db_session, TRIP_ID.upper()) == 0
        assert not files.trip_dir(TRIP_ID).exists()


class TestCanonicalTripId:
    def test_uuid_spellings_collapse(self):
        assert canonical_trip_id(TRIP_ID.upper()) == TRIP_ID
        assert canonical_trip_id(TRIP_ID.replace("-", "")) == TRIP_ID

    def test_other_ids_kept(self):
        assert canonical_trip_id("other-trip") == "other-trip"
