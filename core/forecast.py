"""
Short-Horizon AQI Forecasting

Given a bounded history of recent AQI values, produce a 5-step
projected curve and a confidence score.

Two paths:
- Heuristic (always available): damped momentum plus mean reversion
  toward AQI 100, with a small random jitter per step
- External (optional): a pluggable black-box predictor whose output
  is parsed for numbers, re-anchored to the current value and
  trimmed or padded to the horizon

Failure tiers for the external path:
- Unparseable output (fewer than 3 numbers): heuristic curve for
  this call only, confidence lowered to 0.6
- Raised error, timeout or malformed response: the engine moves from
  ACTIVE to DEGRADED and stays heuristic-only for its lifetime

predict() never raises and always returns a fully populated result.
"""

import asyncio
import logging
import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .exceptions import PredictorFailure
from .predictors import ExternalPredictor, PredictorOutput, build_prompt
from .reading import round_half_up

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


class ForecasterStatus(Enum):
    """Which forecasting path the engine is on."""
    HEURISTIC = "heuristic"   # No external predictor configured
    ACTIVE = "active"         # External predictor in use
    DEGRADED = "degraded"     # External predictor failed; heuristic for good


class ForecastSource(Enum):
    """Which path produced a given result."""
    HEURISTIC = "heuristic"
    EXTERNAL = "external"
    FALLBACK = "fallback"     # External output unusable, heuristic curve


@dataclass(frozen=True)
class PredictionResult:
    """
    A complete forecast.

    Attributes:
        current: Latest observed AQI (0 for empty history)
        prediction_curve: Exactly HORIZON projected values
        confidence: Score in [0, 1]
        source: Path that produced the curve
    """
    current: float
    prediction_curve: Tuple[float, ...]
    confidence: float
    source: ForecastSource = ForecastSource.HEURISTIC

    def to_dict(self) -> Dict:
        return {
            "current": self.current,
            "prediction_curve": list(self.prediction_curve),
            "confidence": self.confidence,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class HeuristicParameters:
    """Tuning for the momentum / mean-reversion projection."""
    mean_level: float = 100.0       # AQI the projection drifts back toward
    damping: float = 0.8            # Momentum multiplier per step
    reversion_rate: float = 0.05    # Fraction of distance to mean closed per step
    jitter: float = 2.5             # Half-width of per-step uniform noise
    confidence_low: float = 0.85
    confidence_high: float = 0.95


def _finite(values: Iterable[float]) -> List[float]:
    return [v for v in values if math.isfinite(v)]

def extract_numbers(output: PredictorOutput) -> List[float]:
    """
    Recover numeric tokens from predictor output.

    Text is scanned for embedded numbers; sequences contribute their
    numeric items and any numbers embedded in string items.
    Non-finite values (including digit runs too long for a float) are
    dropped.

    Raises:
        PredictorFailure: If the output is neither text nor a sequence
    """
    if isinstance(output, str):
        return _finite(float(token) for token in NUMBER_PATTERN.findall(output))
    if isinstance(output, (list, tuple)):
        values: List[float] = []
        for item in output:
            if isinstance(item, bool):
                continue
            if isinstance(item, Real):
                values.append(float(item))
            elif isinstance(item, str):
                values.extend(float(token) for token in NUMBER_PATTERN.findall(item))
        return _finite(values)
    raise PredictorFailure(f"Malformed predictor output of type {type(output).__name__}")


class ForecastEngine:
    """
    Stateless-per-call AQI forecaster.

    The caller owns the history window and passes it on every call;
    the only state kept here is the random source and the sticky
    ACTIVE -> DEGRADED status of the external path.

    Example:
        engine = ForecastEngine(rng=random.Random(7))
        result = await engine.predict([100, 102, 105, 108, 110])
        print(result.prediction_curve, result.confidence)
    """

    RECENT_WINDOW = 10
    HORIZON = 5
    MAX_HISTORY = 50
    MIN_EXTERNAL_VALUES = 3
    EXTERNAL_CONFIDENCE = 0.88
    FALLBACK_CONFIDENCE = 0.6

    def __init__(
        self,
        predictor: Optional[ExternalPredictor] = None,
        rng: Optional[random.Random] = None,
        timeout_seconds: float = 5.0,
        parameters: Optional[HeuristicParameters] = None,
    ):
        """
        Args:
            predictor: Optional external forecaster
            rng: Random source for jitter and confidence (seedable)
            timeout_seconds: Upper bound on one external call
            parameters: Heuristic tuning (defaults if None)
        """
        self.predictor = predictor
        self.rng = rng or random.Random()
        self.timeout_seconds = timeout_seconds
        self.parameters = parameters or HeuristicParameters()
        self._status = ForecasterStatus.ACTIVE if predictor is not None else ForecasterStatus.HEURISTIC
        self.last_failure: Optional[str] = None

    @property
    def status(self) -> ForecasterStatus:
        return self._status

    def _degrade(self, reason: str) -> None:
        if self._status is ForecasterStatus.ACTIVE:
            logger.error(f"External predictor failed, switching to heuristic for this session: {reason}")
        self._status = ForecasterStatus.DEGRADED
        self.last_failure = reason

    async def predict(self, history: Sequence[float]) -> PredictionResult:
        """
        Forecast the next HORIZON values.

        Args:
            history: Recent AQI values, oldest first (at most MAX_HISTORY
                are meaningful; only the last RECENT_WINDOW are used;
                NaN and infinite values are skipped)

        Returns:
            PredictionResult with exactly HORIZON curve values
        """
        recent = _finite(float(v) for v in history)[-self.RECENT_WINDOW:]

        if self._status is not ForecasterStatus.ACTIVE:
            return self.heuristic_predict(recent)

        try:
            output = await asyncio.wait_for(
                self.predictor.generate(build_prompt(recent)),
                timeout=self.timeout_seconds,
            )
            values = extract_numbers(output)
        except asyncio.TimeoutError:
            self._degrade(f"timed out after {self.timeout_seconds}s")
            return self.heuristic_predict(recent)
        except Exception as e:
            self._degrade(f"{type(e).__name__}: {e}")
            return self.heuristic_predict(recent)

        if len(values) < self.MIN_EXTERNAL_VALUES:
            return self._fallback(recent, f"{len(values)} usable numeric tokens")

        result = self._anchor_external(recent, values)
        if not all(math.isfinite(v) for v in result.prediction_curve):
            return self._fallback(recent, "anchored curve overflowed")
        return result

    def _fallback(self, recent: List[float], reason: str) -> PredictionResult:
        logger.warning(f"External predictor output unusable ({reason}), using heuristic curve for this call")
        fallback = self.heuristic_predict(recent)
        return PredictionResult(
            current=fallback.current,
            prediction_curve=fallback.prediction_curve,
            confidence=self.FALLBACK_CONFIDENCE,
            source=ForecastSource.FALLBACK,
        )

    def _anchor_external(self, recent: List[float], values: List[float]) -> PredictionResult:
        """Shift the external curve so it starts at the current value."""
        current = recent[-1] if recent else 0.0
        offset = current - values[0]
        curve = [v + offset for v in values[:self.HORIZON]]
        # Hold the last projected value to fill a short curve
        while len(curve) < self.HORIZON:
            curve.append(curve[-1])
        return PredictionResult(
            current=current,
            prediction_curve=tuple(curve),
            confidence=self.EXTERNAL_CONFIDENCE,
            source=ForecastSource.EXTERNAL,
        )

    def heuristic_predict(self, recent: Sequence[float]) -> PredictionResult:
        """
        Damped momentum / mean-reversion projection.

        For each step:
            momentum *= damping
            gravity = (mean_level - val) * reversion_rate
            val += momentum + gravity + uniform(-jitter, jitter)

        Args:
            recent: The most recent values (only the last two finite ones matter)
        """
        p = self.parameters
        recent = _finite(recent)
        current = float(recent[-1]) if len(recent) >= 1 else 0.0
        prev = float(recent[-2]) if len(recent) >= 2 else current

        momentum = current - prev
        val = current
        curve: List[float] = []
        for _ in range(self.HORIZON):
            momentum *= p.damping
            gravity = (p.mean_level - val) * p.reversion_rate
            val += momentum + gravity + self.rng.uniform(-p.jitter, p.jitter)
            curve.append(round_half_up(val))

        confidence = self.rng.uniform(p.confidence_low, p.confidence_high)
        return PredictionResult(
            current=current,
            prediction_curve=tuple(curve),
            confidence=min(1.0, max(0.0, confidence)),
            source=ForecastSource.HEURISTIC,
        )
