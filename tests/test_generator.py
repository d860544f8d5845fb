"""
Tests for the Synthetic AQI Generator

These tests verify the synthetic signal formula, spike handling,
the sensor proxy relationship and batch generation.

Run with: pytest tests/test_generator.py -v
"""

import math
import random

import pytest

from engine.generator import AQIBaseline, SyntheticGenerator
from tests.doubles import MidpointRandom


class TestSignalFormula:
    """Test the deterministic parts of the signal with stubbed randomness."""

    def test_base_at_time_zero(self):
        """sin(0) = 0 so the base is the mean; midpoint noise is zero."""
        gen = SyntheticGenerator(rng=MidpointRandom(0.5))
        reading = gen.generate_reading(0)

        assert reading.timestamp == 0
        assert reading.normalized_aqi == 100.0
        assert reading.sensor_ppm == pytest.approx(150.0)

    def test_noise_is_added(self):
        """Fraction 0.75 of [-10, 10] is +5."""
        gen = SyntheticGenerator(rng=MidpointRandom(0.75))
        reading = gen.generate_reading(0)

        assert reading.normalized_aqi == 105.0
        assert reading.sensor_ppm == pytest.approx(157.5)

    def test_base_follows_sine(self):
        """At t = pi/2 * 10000 ms the base peaks at 150."""
        t = int(math.pi / 2 * 10000)
        gen = SyntheticGenerator(rng=MidpointRandom(0.5))

        assert gen.generate_reading(t).normalized_aqi == 150.0

    def test_minor_spike(self):
        """A draw above 0.95 adds uniform(0, 100)."""
        gen = SyntheticGenerator(rng=MidpointRandom(0.5, draws=[0.96, 0.5]))

        assert gen.generate_reading(0).normalized_aqi == 150.0

    def test_major_spike_overrides_minor(self):
        """A draw above 0.99 replaces the minor spike with uniform(0, 300)."""
        gen = SyntheticGenerator(rng=MidpointRandom(0.5, draws=[0.999, 0.999]))

        assert gen.generate_reading(0).normalized_aqi == 250.0

    def test_major_spike_without_minor(self):
        gen = SyntheticGenerator(rng=MidpointRandom(0.5, draws=[0.1, 0.995]))

        assert gen.generate_reading(0).normalized_aqi == 250.0

    def test_negative_values_clamped(self):
        """Raw AQI below zero is clamped to zero."""
        baseline = AQIBaseline(mean_aqi=0.0, amplitude=0.0)
        gen = SyntheticGenerator(baseline=baseline, rng=MidpointRandom(0.0))
        reading = gen.generate_reading(0)

        assert reading.normalized_aqi == 0.0
        assert reading.sensor_ppm == 0.0

    def test_half_rounds_up(self):
        """100.5 rounds to 101, not to the even 100."""
        gen = SyntheticGenerator(baseline=AQIBaseline(mean_aqi=100.5), rng=MidpointRandom(0.5))

        assert gen.generate_reading(0).normalized_aqi == 101.0

    def test_clock_used_when_no_timestamp(self):
        gen = SyntheticGenerator(rng=MidpointRandom(), clock=lambda: 123_456)

        assert gen.generate_reading().timestamp == 123_456


class TestRandomizedProperties:
    """Properties that hold for any random draw."""

    def setup_method(self):
        """Set up test fixtures."""
        self.gen = SyntheticGenerator(rng=random.Random(2024))

    def test_aqi_never_negative(self):
        for t in range(0, 2_000_000, 997):
            assert self.gen.generate_reading(t).normalized_aqi >= 0

    def test_ppm_is_linear_proxy_of_unrounded_aqi(self):
        """sensor_ppm / 1.5 rounds to normalized_aqi."""
        for t in range(0, 500_000, 1_009):
            reading = self.gen.generate_reading(t)
            raw = reading.sensor_ppm / 1.5
            assert abs(raw - reading.normalized_aqi) <= 0.5 + 1e-9

    def test_seed_reproduces_output(self):
        a = SyntheticGenerator(rng=random.Random(7)).generate_to_list(0, 20)
        b = SyntheticGenerator(rng=random.Random(7)).generate_to_list(0, 20)

        assert a == b

    def test_spikes_occur(self):
        """Over many draws some readings exceed the 160 ceiling of the un-spiked signal."""
        readings = self.gen.generate_to_list(0, 5_000, 100)

        assert any(r.normalized_aqi > 160 for r in readings)


class TestBatchGeneration:
    """Tests for batch and export helpers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.gen = SyntheticGenerator(rng=random.Random(1))

    def test_batch_timestamps(self):
        readings = self.gen.generate_to_list(start_ms=5_000, count=4, interval_ms=250)

        assert [r.timestamp for r in readings] == [5_000, 5_250, 5_500, 5_750]

    def test_empty_batch(self):
        assert self.gen.generate_to_list(0, 0) == []

    def test_batch_is_lazy(self):
        batch = self.gen.generate_batch(start_ms=0, count=10 ** 9)

        assert next(batch).timestamp == 0
        assert next(batch).timestamp == 1_000
