"""
Engine Module - Reading Acquisition

This module produces the continuous stream of AQI readings under
three interchangeable acquisition modes.

Key Components:
- SyntheticGenerator: Time-driven synthetic readings with spikes
- StreamIngest: WebSocket live feed into a single live cell
- ReplayBuffer: Bounded cyclic replay of stored readings
- ModeController: Live / Simulation / Replay state machine
- DataEngine: Facade producing one packet per tick
- AcquisitionPipeline: Tick loop feeding the forecaster

Usage:
    from engine import DataEngine, AcquisitionPipeline
    from core import ForecastEngine

    engine = DataEngine(store=store)
    await engine.start()
    pipeline = AcquisitionPipeline(engine, ForecastEngine())
    result = await pipeline.tick()
"""

from .generator import AQIBaseline, SyntheticGenerator
from .stream import StreamIngest
from .replay import REPLAY_CAPACITY, ReplayBuffer
from .modes import (
    AcquisitionMode,
    ModeController,
    ModeState,
    SideEffect,
    Transition,
    transition,
)
from .data_engine import DataEngine, ReadingStore
from .pipeline import AcquisitionPipeline, HistoryWindow, TickResult

__all__ = [
    # Sources
    "AQIBaseline",
    "SyntheticGenerator",
    "StreamIngest",
    "REPLAY_CAPACITY",
    "ReplayBuffer",

    # Mode state machine
    "AcquisitionMode",
    "ModeController",
    "ModeState",
    "SideEffect",
    "Transition",
    "transition",

    # Facade and pipeline
    "DataEngine",
    "ReadingStore",
    "AcquisitionPipeline",
    "HistoryWindow",
    "TickResult",
]

__version__ = "0.1.0"
