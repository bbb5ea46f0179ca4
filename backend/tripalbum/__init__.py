"""
TripAlbum Backend — Application Package Initializer
====================================================

What: Marks the `tripalbum` directory as a Python package.
Why:  Enables module imports like `from tripalbum.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Trips, Photos, Auth)    │  ← Business rules, file + record coordination
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database + Upload root (Storage)   │  ← Async SQLAlchemy sessions, trip directories
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls; services raise exceptions from
    `tripalbum.exceptions`, which global handlers in `tripalbum.main` turn
    into JSON error bodies.
"""

__version__ = "1.0.0"
