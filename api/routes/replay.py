"""
Replay Seeding Endpoints

Replay mode cycles through stored history, which is empty on a
fresh install. These endpoints seed the store with a synthetic
series so replay can be demonstrated straight away.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.models import SeedRequest, SeedResponse
from api.services import Services, get_services
from core.exceptions import PersistenceUnavailable
from core.reading import now_ms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/replay", tags=["Replay"])


@router.post(
    "/seed",
    response_model=SeedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Seed the store with synthetic history",
    description="""
    Generate ``count`` synthetic readings spaced ``interval_ms`` apart
    and store them. By default the series ends at the current time.

    Switch to replay mode afterwards to pick up the new history.
    """
)
async def seed_history(
    request: SeedRequest,
    services: Services = Depends(get_services)
):
    start_ms = request.start_ms
    if start_ms is None:
        start_ms = max(0, now_ms() - (request.count - 1) * request.interval_ms)

    readings = services.engine.generator.generate_to_list(start_ms, request.count, request.interval_ms)
    try:
        inserted = await services.store.put_many(readings)
    except PersistenceUnavailable as e:
        logger.error(f"Seeding failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reading store unavailable"
        )

    logger.info(f"Seeded {inserted} synthetic readings")
    return SeedResponse(
        inserted=inserted,
        start_ms=readings[0].timestamp,
        end_ms=readings[-1].timestamp,
    )
