"""
TripAlbum Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the whole suite.
How:   The environment is pointed at a throwaway SQLite database and upload
       directory BEFORE anything from tripalbum is imported, because
       settings, the engine and the FileService singleton are built at
       import time.

Fixture Hierarchy:
    Function-scoped:
    ├── db_tables:          create all tables, drop them after the test
    ├── db_session:         real AsyncSession on the test database
    ├── mock_db_session:    AsyncMock session (no database at all)
    ├── test_client:        httpx AsyncClient bound to the ASGI app
    ├── sample_image_bytes: tiny JPEG payload
    ├── make_upload:        IncomingFile factory over in-memory bytes
    └── trip_payload:       body of POST /api/trips
"""

import io
import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="tripalbum_test_")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["UPLOAD_ROOT"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["CASCADE_PHOTO_DELETE"] = "false"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tripalbum.database import async_session_factory, create_tables, drop_tables  # noqa: E402


@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema per test; the SQLite file outlives the test, its tables do not."""
    await create_tables()
    yield
    await drop_tables()


@pytest_asyncio.fixture
async def db_session(db_tables):
    """
    A real session against the test database.

    Service tests call flush() only; the fixture commits at the end the way
    get_db_session() does for a request.
    """
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = trip
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG the upload path needs: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def make_upload():
    """
    Factory for IncomingFile values backed by in-memory bytes.

    Usage:
        make_upload("beach.jpg", "image/jpeg", sample_image_bytes)
    """
    from tripalbum.services.file_service import IncomingFile

    def build(original_name: str, content_type: str, content: bytes) -> IncomingFile:
        buffer = io.BytesIO(content)

        async def read(n: int = -1) -> bytes:
            return buffer.read(n)

        return IncomingFile(
            original_name=original_name,
            content_type=content_type,
            read=read,
            size=len(content),
        )

    return build


@pytest.fixture
def trip_payload():
    return {
        "title": "Paris",
        "destination": "France",
        "startDate": "2025-01-01",
        "endDate": "2025-01-10",
        "userId": "u1",
    }


@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    HTTPX client talking to the app in-process.

    Lifespan events do not run under ASGITransport; db_tables and the
    FileService singleton already provide the schema and upload root.
    """
    from tripalbum.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
