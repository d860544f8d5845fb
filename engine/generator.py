"""
Synthetic AQI Generator

Generates plausible air-quality sensor readings as a pure function
of wall-clock time plus fresh randomness:

- Base level: slow sine oscillation between 50 and 150
- Noise: uniform +/-10 on every reading
- Spikes: occasional pollution events (5% chance of up to +100,
  1% chance of up to +300 which overrides the smaller spike)

The raw sensor value is a fixed linear proxy of the AQI
(sensor_ppm = 1.5 x aqi before rounding). No state is carried
between calls; the random source is injectable so runs can be
reproduced.
"""

import math
import random
from dataclasses import dataclass
from typing import Callable, Generator, List, Optional

from core.reading import Reading, now_ms, round_half_up


@dataclass(frozen=True)
class AQIBaseline:
    """
    Shape of the synthetic signal.

    Defaults describe an urban site whose AQI swings between
    "moderate" and "poor" with occasional severe events.
    """
    time_scale_ms: float = 10000.0     # Sine period divisor (ms per radian)
    mean_aqi: float = 100.0            # Centre of the oscillation
    amplitude: float = 50.0            # Swing either side of the mean
    noise: float = 10.0                # Half-width of uniform noise
    spike_threshold: float = 0.95      # draw() above this -> minor spike
    spike_max: float = 100.0
    major_spike_threshold: float = 0.99
    major_spike_max: float = 300.0
    ppm_per_aqi: float = 1.5           # Sensor proxy slope


class SyntheticGenerator:
    """
    Generator for synthetic AQI readings.

    Example:
        gen = SyntheticGenerator(rng=random.Random(42))
        reading = gen.generate_reading()

        # Seed a store with a minute of one-second readings
        series = gen.generate_to_list(start_ms=0, count=60, interval_ms=1000)
    """

    def __init__(
        self,
        baseline: Optional[AQIBaseline] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            baseline: Signal shape (uses defaults if None)
            rng: Random source (seed it for reproducible output)
            clock: Returns the current time in epoch ms
        """
        self.baseline = baseline or AQIBaseline()
        self.rng = rng or random.Random()
        self.clock = clock

    def raw_aqi(self, t_ms: int) -> float:
        """
        Unrounded AQI at time ``t_ms`` with fresh noise and spikes.
        """
        b = self.baseline
        base = math.sin(t_ms / b.time_scale_ms) * b.amplitude + b.mean_aqi
        noise = self.rng.uniform(-b.noise, b.noise)

        spike = 0.0
        if self.rng.random() > b.spike_threshold:
            spike = self.rng.uniform(0, b.spike_max)
        if self.rng.random() > b.major_spike_threshold:
            spike = self.rng.uniform(0, b.major_spike_max)

        return max(0.0, base + noise + spike)

    def generate_reading(self, t_ms: Optional[int] = None) -> Reading:
        """
        Generate a single reading.

        Args:
            t_ms: Timestamp in epoch ms (defaults to the clock)
        """
        t = self.clock() if t_ms is None else t_ms
        aqi = self.raw_aqi(t)
        return Reading(
            timestamp=t,
            sensor_ppm=aqi * self.baseline.ppm_per_aqi,
            normalized_aqi=round_half_up(aqi),
        )

    def generate_batch(
        self,
        start_ms: int,
        count: int,
        interval_ms: int = 1000
    ) -> Generator[Reading, None, None]:
        """
        Generate a time-ordered series of readings.

        Args:
            start_ms: Timestamp of the first reading
            count: Number of readings
            interval_ms: Spacing between readings

        Yields:
            Readings with strictly increasing timestamps
        """
        for i in range(count):
            yield self.generate_reading(start_ms + i * interval_ms)

    def generate_to_list(
        self,
        start_ms: int,
        count: int,
        interval_ms: int = 1000
    ) -> List[Reading]:
        """Generate readings and return as a list."""
        return list(self.generate_batch(start_ms, count, interval_ms))
