"""
Tests for the Forecast Engine

These tests verify the heuristic projection, the external
predictor path with its parsing and anchoring rules, and the
two failure tiers (per-call fallback vs sticky degradation).

Run with: pytest tests/test_forecast.py -v
"""

import asyncio
import math
import random

import pytest

from core.exceptions import PredictorFailure
from core.forecast import (
    ForecastEngine,
    ForecasterStatus,
    ForecastSource,
    PredictionResult,
    extract_numbers,
)
from core.predictors import build_prompt
from tests.doubles import MidpointRandom

EXAMPLE_HISTORY = [100, 102, 105, 108, 110]


class ScriptedPredictor:
    """External predictor returning a fixed output (or raising)."""

    def __init__(self, output=None, error=None, delay=0.0):
        self.output = output
        self.error = error
        self.delay = delay
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


class TestHeuristic:
    """Tests for the always-available projection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = ForecastEngine(rng=MidpointRandom(0.5))

    @pytest.mark.asyncio
    async def test_worked_example(self):
        """current=110, first step = 110 + 2*0.8 + (100-110)*0.05 = 111.1 -> 111."""
        result = await self.engine.predict(EXAMPLE_HISTORY)

        assert result.current == 110
        assert result.prediction_curve[0] == 111
        assert result.prediction_curve == (111, 112, 112, 112, 112)
        assert result.confidence == pytest.approx(0.9)
        assert result.source is ForecastSource.HEURISTIC

    @pytest.mark.asyncio
    async def test_depends_only_on_last_two_values(self):
        a = await self.engine.predict([1, 2, 3, 108, 110])
        b = await self.engine.predict([108, 110])

        assert a.prediction_curve == b.prediction_curve

    @pytest.mark.asyncio
    async def test_empty_history(self):
        result = await self.engine.predict([])

        assert result.current == 0
        assert result.prediction_curve[0] == 5
        assert len(result.prediction_curve) == 5

    @pytest.mark.asyncio
    async def test_single_value_has_no_momentum(self):
        """prev defaults to current, so only mean reversion moves the curve."""
        result = await self.engine.predict([100])

        assert result.prediction_curve == (100, 100, 100, 100, 100)

    @pytest.mark.asyncio
    async def test_mean_reversion_from_above(self):
        result = await self.engine.predict([300, 300])

        assert list(result.prediction_curve) == sorted(result.prediction_curve, reverse=True)
        assert result.prediction_curve[-1] < 300

    @pytest.mark.asyncio
    @pytest.mark.parametrize("length", [0, 1, 10, 50])
    async def test_shape_for_history_lengths(self, length):
        engine = ForecastEngine(rng=random.Random(length))
        history = [random.Random(99).uniform(0, 400) for _ in range(length)]

        result = await engine.predict(history)

        assert len(result.prediction_curve) == 5
        assert 0.0 <= result.confidence <= 1.0
        assert 0.85 <= result.confidence <= 0.95

    @pytest.mark.asyncio
    async def test_non_finite_history_values_skipped(self):
        result = await self.engine.predict([100.0, float("nan"), float("inf")])

        assert result.current == 100
        assert result.prediction_curve == (100, 100, 100, 100, 100)

    @pytest.mark.asyncio
    async def test_all_non_finite_history_treated_as_empty(self):
        result = await self.engine.predict([float("nan")])

        assert result.current == 0
        assert result.prediction_curve[0] == 5

    def test_heuristic_predict_is_synchronous(self):
        result = self.engine.heuristic_predict([108, 110])

        assert isinstance(result, PredictionResult)
        assert result.prediction_curve[0] == 111

    def test_to_dict(self):
        d = self.engine.heuristic_predict([108, 110]).to_dict()

        assert d["current"] == 110
        assert d["prediction_curve"] == [111, 112, 112, 112, 112]
        assert d["source"] == "heuristic"


class TestExtractNumbers:
    """Tests for parsing predictor output."""

    def test_text(self):
        assert extract_numbers("next: 112, 115.5 then -3") == [112.0, 115.5, -3.0]

    def test_no_digits(self):
        assert extract_numbers("abc") == []

    def test_sequence(self):
        assert extract_numbers([100, 101.5, "about 102", None, True]) == [100.0, 101.5, 102.0]

    def test_non_finite_dropped(self):
        assert extract_numbers("9" * 400 + " 1 2") == [1.0, 2.0]
        assert extract_numbers([float("inf"), 5, float("nan")]) == [5.0]

    def test_malformed_type(self):
        with pytest.raises(PredictorFailure):
            extract_numbers(None)

    def test_prompt_format(self):
        assert build_prompt([100.0, 102.5]) == "predict next values: 100, 102.5"


class TestExternalPredictor:
    """Tests for the optional external path."""

    def make_engine(self, predictor, timeout=1.0):
        return ForecastEngine(predictor=predictor, rng=MidpointRandom(0.5), timeout_seconds=timeout)

    def test_status_without_predictor(self):
        assert ForecastEngine().status is ForecasterStatus.HEURISTIC

    def test_status_with_predictor(self):
        assert self.make_engine(ScriptedPredictor("1 2 3")).status is ForecasterStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_curve_anchored_to_current(self):
        predictor = ScriptedPredictor("105, 107, 109, 111, 113, 115")
        engine = self.make_engine(predictor)

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.current == 110
        assert result.prediction_curve == (110, 112, 114, 116, 118)
        assert result.confidence == 0.88
        assert result.source is ForecastSource.EXTERNAL
        assert predictor.prompts == ["predict next values: 100, 102, 105, 108, 110"]

    @pytest.mark.asyncio
    async def test_short_curve_padded(self):
        engine = self.make_engine(ScriptedPredictor("1 2 3"))

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.prediction_curve == (110, 111, 112, 112, 112)

    @pytest.mark.asyncio
    async def test_numeric_sequence_output(self):
        engine = self.make_engine(ScriptedPredictor([50, 60, 70, 80, 90]))

        result = await engine.predict([20])

        assert result.prediction_curve == (20, 30, 40, 50, 60)

    @pytest.mark.asyncio
    async def test_only_last_ten_values_sent(self):
        predictor = ScriptedPredictor("1 2 3")
        engine = self.make_engine(predictor)

        await engine.predict(list(range(50)))

        assert predictor.prompts[0] == build_prompt([float(v) for v in range(40, 50)])

    @pytest.mark.asyncio
    async def test_unparseable_output_falls_back_per_call(self):
        """'abc' has no numbers: heuristic curve, confidence 0.6, predictor stays active."""
        predictor = ScriptedPredictor("abc")
        engine = self.make_engine(predictor)

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.confidence == 0.6
        assert result.source is ForecastSource.FALLBACK
        assert result.prediction_curve == (111, 112, 112, 112, 112)
        assert engine.status is ForecasterStatus.ACTIVE

        await engine.predict(EXAMPLE_HISTORY)
        assert len(predictor.prompts) == 2

    @pytest.mark.asyncio
    async def test_overflowing_digits_fall_back_per_call(self):
        engine = self.make_engine(ScriptedPredictor("9" * 400 + " 1 2"))

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.source is ForecastSource.FALLBACK
        assert result.confidence == 0.6
        assert result.prediction_curve == (111, 112, 112, 112, 112)
        assert engine.status is ForecasterStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_overflowing_anchored_curve_falls_back(self):
        engine = self.make_engine(ScriptedPredictor([1e308, -1e308, 0.0]))

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.source is ForecastSource.FALLBACK
        assert all(math.isfinite(v) for v in result.prediction_curve)

    @pytest.mark.asyncio
    async def test_two_numbers_is_not_enough(self):
        engine = self.make_engine(ScriptedPredictor("1 and 2"))

        result = await engine.predict(EXAMPLE_HISTORY)

        assert result.confidence == 0.6

    @pytest.mark.asyncio
    async def test_exception_degrades_permanently(self):
        predictor = ScriptedPredictor(error=RuntimeError("model crashed"))
        engine = self.make_engine(predictor)

        first = await engine.predict(EXAMPLE_HISTORY)
        assert engine.status is ForecasterStatus.DEGRADED
        assert "model crashed" in engine.last_failure
        assert first.source is ForecastSource.HEURISTIC
        assert len(first.prediction_curve) == 5

        predictor.error = None
        predictor.output = "1 2 3 4 5"
        second = await engine.predict(EXAMPLE_HISTORY)

        assert second.source is ForecastSource.HEURISTIC
        assert len(predictor.prompts) == 1

    @pytest.mark.asyncio
    async def test_timeout_degrades(self):
        engine = self.make_engine(ScriptedPredictor("1 2 3", delay=1.0), timeout=0.01)

        result = await engine.predict(EXAMPLE_HISTORY)

        assert engine.status is ForecasterStatus.DEGRADED
        assert 0.85 <= result.confidence <= 0.95

    @pytest.mark.asyncio
    async def test_malformed_response_degrades(self):
        engine = self.make_engine(ScriptedPredictor(output={"unexpected": "shape"}))

        result = await engine.predict(EXAMPLE_HISTORY)

        assert engine.status is ForecasterStatus.DEGRADED
        assert len(result.prediction_curve) == 5
