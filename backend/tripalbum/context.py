"""
TripAlbum Backend — Request Context
====================================

What:  The acting identity of one request, passed explicitly into every
       trip and photo service call.
How:   Built by a FastAPI dependency from the X-User-Id header (the id the
       client received from POST /login) and the current request id.

Two modes:
    - Header absent: legacy behaviour, any caller can reach any trip by id.
    - Header present: the acting user must own the trip being read or
      changed, otherwise ForbiddenError (403).
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from tripalbum.exceptions import ForbiddenError
from tripalbum.middleware.request_id import request_id_var


@dataclass(frozen=True)
class RequestContext:
    user_id: Optional[str] = None
    request_id: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def ensure_owner(self, owner_user_id: str, trip_id: str) -> None:
        """Raise ForbiddenError if an acting user is set and does not own the trip."""
        if self.user_id is not None and self.user_id != owner_user_id:
            raise ForbiddenError(
                context={
                    "trip_id": trip_id,
                    "acting_user_id": self.user_id,
                    "request_id": self.request_id,
                },
            )


# Services called outside HTTP (scripts, tests) default to this
ANONYMOUS = RequestContext()


async def get_request_context(
    x_user_id: Optional[str] = Header(
        default=None,
        description="Id of the acting user; enables ownership checks when sent",
    ),
) -> RequestContext:
    user_id = x_user_id.strip() if x_user_id else None
    return RequestContext(user_id=user_id or None, request_id=request_id_var.get(""))
