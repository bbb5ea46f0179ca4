"""
TripAlbum Backend — Trip Route Handlers
========================================

What:  CRUD over /api/trips.
Who:   Called by the dashboard front-end.

Ids in the path are taken as strings; TripService answers 404 for ids that
are unknown or not even well-formed.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tripalbum.context import RequestContext, get_request_context
from tripalbum.database import get_db_session
from tripalbum.schemas.common import ErrorResponse, MessageResponse
from tripalbum.schemas.trip import TripCreateRequest, TripResponse, TripUpdateRequest
from tripalbum.services.trip_service import trip_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trips", tags=["Trips"])


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    responses={400: {"description": "Missing required fields", "model": ErrorResponse}},
    summary="Create a trip",
)
async def create_trip(
    payload: TripCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> TripResponse:
    return await trip_service.create_trip(db, payload, context)


@router.get(
    "",
    response_model=List[TripResponse],
    responses={400: {"description": "userId missing", "model": ErrorResponse}},
    summary="List a user's trips, earliest start date first",
)
async def list_trips(
    user_id: str = Query(..., alias="userId", min_length=1, description="Owner of the trips"),
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> List[TripResponse]:
    return await trip_service.list_trips(db, user_id, context)


@router.get(
    "/{trip_id}",
    response_model=TripResponse,
    responses={404: {"description": "Trip not found", "model": ErrorResponse}},
    summary="Get one trip",
)
async def get_trip(
    trip_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> TripResponse:
    return await trip_service.get_trip(db, trip_id, context)


@router.put(
    "/{trip_id}",
    response_model=TripResponse,
    responses={
        400: {"description": "Merged trip is invalid", "model": ErrorResponse},
        404: {"description": "Trip not found", "model": ErrorResponse},
    },
    summary="Partially update a trip",
)
async def update_trip(
    trip_id: str,
    payload: TripUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> TripResponse:
    return await trip_service.update_trip(db, trip_id, payload, context)


@router.delete(
    "/{trip_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Trip not found", "model": ErrorResponse}},
    summary="Delete a trip",
)
async def delete_trip(
    trip_id: str,
    db: AsyncSession = Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
) -> MessageResponse:
    await trip_service.delete_trip(db, trip_id, context)
    return MessageResponse(message="Trip deleted successfully")
