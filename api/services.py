"""
Service Wiring

Builds the engine stack from settings, starts it in the application
lifespan and exposes it to route handlers through a dependency.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from api.database import PersistenceStore
from core.config import Settings
from core.forecast import ForecastEngine
from core.predictors import HttpTextPredictor
from engine.data_engine import DataEngine
from engine.generator import SyntheticGenerator
from engine.modes import AcquisitionMode
from engine.pipeline import AcquisitionPipeline, HistoryWindow

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the routes need, owned by the app lifespan."""
    store: PersistenceStore
    engine: DataEngine
    forecaster: ForecastEngine
    pipeline: AcquisitionPipeline
    predictor: Optional[HttpTextPredictor] = None
    tick_task: Optional[asyncio.Task] = None
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)


def build_services(settings: Settings) -> Services:
    """Construct the stack (no I/O)."""
    seed = settings.random_seed
    store = PersistenceStore(settings.database_url)
    engine = DataEngine(
        store=store,
        generator=SyntheticGenerator(rng=random.Random(seed)),
        initial_mode=AcquisitionMode.parse(settings.initial_mode),
    )

    predictor = None
    if settings.predictor_url:
        predictor = HttpTextPredictor(settings.predictor_url, api_token=settings.predictor_api_token)

    forecaster = ForecastEngine(
        predictor=predictor,
        # offset so the forecaster does not replay the generator's draws
        rng=random.Random(None if seed is None else seed + 1),
        timeout_seconds=settings.predictor_timeout_seconds,
    )
    pipeline = AcquisitionPipeline(engine, forecaster, HistoryWindow(settings.history_size))
    return Services(
        store=store,
        engine=engine,
        forecaster=forecaster,
        pipeline=pipeline,
        predictor=predictor,
    )


async def start_services(services: Services, settings: Settings) -> None:
    """Open the store, connect the live feed and start the tick loop."""
    if await services.engine.start():
        logger.info("✅ Reading store connected")
    else:
        logger.warning("⚠️ Reading store unavailable, running in-memory only")

    if settings.live_feed_url:
        await services.engine.stream.connect(settings.live_feed_url)

    if settings.tick_interval_ms > 0:
        services.tick_task = asyncio.create_task(
            services.pipeline.run(settings.tick_interval_ms / 1000, services.stop_event)
        )
        logger.info(f"Tick loop started ({settings.tick_interval_ms} ms)")


async def stop_services(services: Services) -> None:
    services.stop_event.set()
    if services.tick_task is not None:
        await services.tick_task
    await services.engine.close()
    if services.predictor is not None:
        await services.predictor.close()


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the running stack."""
    return request.app.state.services
