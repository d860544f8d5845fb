"""
Acquisition Pipeline

Drives one logical tick: fetch a packet from the data engine, append
its AQI to the caller-owned history window, and ask the forecaster
for a projection. The data engine and forecaster never call each
other; this is where they are composed.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional

from core.forecast import ForecastEngine, PredictionResult
from core.reading import Reading

from .data_engine import DataEngine

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 50


class HistoryWindow:
    """Bounded window of recent AQI values, oldest evicted first."""

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        self.capacity = capacity
        self._values: Deque[float] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._values)

    def append(self, value: float) -> None:
        self._values.append(float(value))

    def values(self) -> List[float]:
        return list(self._values)

    def clear(self) -> None:
        self._values.clear()


@dataclass(frozen=True)
class TickResult:
    """Outcome of one pipeline tick."""
    reading: Reading
    prediction: PredictionResult
    mode: str
    inference_ms: float

    def to_dict(self) -> Dict:
        return {
            "reading": self.reading.to_dict(),
            "prediction": self.prediction.to_dict(),
            "mode": self.mode,
            "inference_ms": round(self.inference_ms, 3),
        }


class AcquisitionPipeline:
    """
    Tick loop composing acquisition and forecasting.

    Example:
        pipeline = AcquisitionPipeline(engine, ForecastEngine())
        result = await pipeline.tick()
        print(result.reading.normalized_aqi, result.prediction.prediction_curve)
    """

    def __init__(
        self,
        engine: DataEngine,
        forecaster: ForecastEngine,
        history: Optional[HistoryWindow] = None,
    ):
        self.engine = engine
        self.forecaster = forecaster
        self.history = history or HistoryWindow()
        self.ticks = 0
        self.last_result: Optional[TickResult] = None

    async def tick(self) -> TickResult:
        reading = self.engine.get_packet()
        self.history.append(reading.normalized_aqi)

        started = time.perf_counter()
        prediction = await self.forecaster.predict(self.history.values())
        inference_ms = (time.perf_counter() - started) * 1000

        self.ticks += 1
        self.last_result = TickResult(
            reading=reading,
            prediction=prediction,
            mode=self.engine.mode.value,
            inference_ms=inference_ms,
        )
        logger.debug(
            f"tick {self.ticks}: aqi={reading.normalized_aqi} "
            f"next={prediction.prediction_curve[0]} ({inference_ms:.1f}ms)"
        )
        return self.last_result

    async def run(
        self,
        interval_seconds: float,
        stop_event: Optional[asyncio.Event] = None,
        max_ticks: Optional[int] = None,
    ) -> int:
        """
        Tick repeatedly until stopped.

        Args:
            interval_seconds: Pause between ticks
            stop_event: Set to end the loop
            max_ticks: Stop after this many ticks

        Returns:
            Number of ticks run
        """
        stop_event = stop_event or asyncio.Event()
        count = 0
        while not stop_event.is_set():
            await self.tick()
            count += 1
            if max_ticks is not None and count >= max_ticks:
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
        return count
