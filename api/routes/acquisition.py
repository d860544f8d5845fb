"""
Acquisition Endpoints

This module exposes the data engine: mode control, single packets,
full acquisition + forecast ticks and the live feed connection.

Key Features:
- Mode switching (live / simulation / replay)
- Non-blocking packet production with AQI category
- One-call tick feeding the server-side history window
- Live WebSocket feed management
"""

import logging

from fastapi import APIRouter, Depends, status

from api.models import (
    LiveConnectRequest,
    LiveStatusResponse,
    ModeRequest,
    ModeResponse,
    PacketResponse,
    ReadingModel,
    TickResponse,
)
from api.services import Services, get_services
from core.air_quality import assess_aqi, classify_aqi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/acquisition", tags=["Acquisition"])


def mode_response(services: Services) -> ModeResponse:
    engine = services.engine
    return ModeResponse(
        mode=engine.mode,
        generation=engine.modes.generation,
        replay_size=len(engine.replay),
        store_available=engine.store_ready,
    )


def live_status(services: Services) -> LiveStatusResponse:
    stream = services.engine.stream
    latest = stream.latest
    return LiveStatusResponse(
        connected=stream.connected,
        url=stream.url,
        messages_received=stream.messages_received,
        messages_dropped=stream.messages_dropped,
        latest=ReadingModel(**latest.to_dict()) if latest else None,
    )


# =========================================
# Mode Control
# =========================================

@router.get(
    "/mode",
    response_model=ModeResponse,
    summary="Get acquisition mode"
)
async def get_mode(services: Services = Depends(get_services)):
    """Current mode and replay buffer state."""
    return mode_response(services)


@router.put(
    "/mode",
    response_model=ModeResponse,
    summary="Set acquisition mode",
    description="""
    Switch the source of subsequent packets.

    - **live**: latest live-feed message (synthetic until one arrives)
    - **simulation**: fresh synthetic readings
    - **replay**: cycle through the most recent 1000 stored readings.
      The buffer reloads in the background; packets are synthetic
      until it lands.
    """
)
async def set_mode(
    request: ModeRequest,
    services: Services = Depends(get_services)
):
    """Switch acquisition mode."""
    services.engine.set_mode(request.mode)
    return mode_response(services)


# =========================================
# Packets
# =========================================

@router.get(
    "/packet",
    response_model=PacketResponse,
    summary="Get one packet"
)
async def get_packet(services: Services = Depends(get_services)):
    """
    Produce one reading from the active source.

    The reading is not added to the server-side history window;
    use the tick endpoint for that.
    """
    reading = services.engine.get_packet()
    assessment = assess_aqi(reading.normalized_aqi).to_dict()
    return PacketResponse(
        reading=ReadingModel(**reading.to_dict()),
        mode=services.engine.mode,
        category=assessment["category"],
        advisory=assessment["advisory"],
    )


@router.post(
    "/tick",
    response_model=TickResponse,
    summary="Run one acquisition + forecast tick"
)
async def tick(services: Services = Depends(get_services)):
    """Get a packet, extend the history window and forecast."""
    result = await services.pipeline.tick()
    body = result.to_dict()
    body["prediction"]["forecaster_status"] = services.forecaster.status.value
    return TickResponse(
        **body,
        category=classify_aqi(result.reading.normalized_aqi).value,
        history_length=len(services.pipeline.history),
    )


# =========================================
# Live Feed
# =========================================

@router.get(
    "/live",
    response_model=LiveStatusResponse,
    summary="Live feed status"
)
async def get_live_status(services: Services = Depends(get_services)):
    return live_status(services)


@router.post(
    "/live/connect",
    response_model=LiveStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Connect the live feed",
    description="Start receiving from a WebSocket feed. Connection errors are logged, not returned."
)
async def connect_live(
    request: LiveConnectRequest,
    services: Services = Depends(get_services)
):
    await services.engine.stream.connect(request.url)
    logger.info(f"Live feed connect requested: {request.url}")
    return live_status(services)


@router.post(
    "/live/disconnect",
    response_model=LiveStatusResponse,
    summary="Disconnect the live feed"
)
async def disconnect_live(services: Services = Depends(get_services)):
    await services.engine.stream.disconnect()
    return live_status(services)
