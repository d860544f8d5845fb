"""
Data Query Endpoints

This module provides read access to the reading store for clients
and external integrations.

Key Features:
- Most recent stored readings (bounded)
- Stored reading count

Store failures propagate as PersistenceUnavailable and are turned
into 503 responses by the application's exception handler.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.models import ReadingCountResponse, ReadingListResponse, ReadingModel
from api.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/query", tags=["Data Query"])


@router.get(
    "/readings",
    response_model=ReadingListResponse,
    summary="Get recent readings",
    description="Most recent stored readings, oldest first."
)
async def get_recent_readings(
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum readings to return"),
    services: Services = Depends(get_services)
):
    readings = await services.store.get_recent(limit)
    logger.debug(f"Returning {len(readings)} stored readings")
    return ReadingListResponse(
        count=len(readings),
        readings=[ReadingModel(**r.to_dict()) for r in readings],
    )


@router.get(
    "/count",
    response_model=ReadingCountResponse,
    summary="Count stored readings"
)
async def get_reading_count(services: Services = Depends(get_services)):
    return ReadingCountResponse(count=await services.store.count())
