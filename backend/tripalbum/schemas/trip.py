"""
TripAlbum Backend — Trip Schemas
=================================

What:  API contract for /api/trips.
How:   Field names are snake_case in Python and camelCase on the wire
       (startDate, packingList, userId ...) through a shared alias generator.

Validation layers:
    TripCreateRequest  → body of POST; missing required fields become 400
    TripUpdateRequest  → body of PUT; every field optional (partial update)
    TripDocument       → the full trip after a PUT merge; re-validated so a
                         partial update cannot leave the trip invalid
    TripResponse       → what every trip endpoint returns
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field

from tripalbum.schemas.common import CamelModel

TripStatus = Literal["wishlist", "upcoming", "completed"]


class PackingItem(CamelModel):
    item: str
    packed: bool = False


class Budget(CamelModel):
    total: float = 0
    spent: float = 0


class TripCreateRequest(CamelModel):
    """
    Body of POST /api/trips.

    Optional fields left out (or sent as null) take their defaults in
    TripService: status "upcoming", empty packing list, zero budget, empty notes.
    """
    title: str = Field(min_length=1, max_length=255)
    destination: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date
    user_id: str = Field(min_length=1, max_length=64)
    status: Optional[TripStatus] = None
    packing_list: Optional[List[PackingItem]] = None
    budget: Optional[Budget] = None
    notes: Optional[str] = None


class TripUpdateRequest(CamelModel):
    """Body of PUT /api/trips/{id}; only the keys present are applied."""
    title: Optional[str] = None
    destination: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[TripStatus] = None
    packing_list: Optional[List[PackingItem]] = None
    budget: Optional[Budget] = None
    notes: Optional[str] = None


class TripDocument(CamelModel):
    """Complete, valid trip content (everything but ids and timestamps)."""
    title: str = Field(min_length=1, max_length=255)
    destination: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date
    status: TripStatus
    packing_list: List[PackingItem]
    budget: Budget
    notes: str


class TripResponse(CamelModel):
    id: str
    user_id: str
    title: str
    destination: str
    start_date: date
    end_date: date
    status: TripStatus
    packing_list: List[PackingItem]
    budget: Budget
    notes: str
    created_at: datetime
    updated_at: datetime
