"""
Reading - the canonical sensor sample.

Every acquisition source (live feed, synthetic generator, replay)
produces this shape, and it is the only contract shared with the
persistence layer and downstream consumers:

    {"timestamp": int, "sensor_ppm": float, "normalized_aqi": float}

The timestamp is epoch milliseconds and doubles as the storage key.
"""

import math
import time
from dataclasses import dataclass, asdict
from typing import Dict, Any


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def round_half_up(value: float) -> float:
    """
    Round to the nearest integer, with halves rounding up.

    Python's built-in round() uses banker's rounding (round(0.5) == 0),
    which would bias AQI values downward at exact halves.
    """
    return float(math.floor(value + 0.5))


@dataclass(frozen=True)
class Reading:
    """
    One timestamped sample.

    Attributes:
        timestamp: Epoch milliseconds (unique storage key)
        sensor_ppm: Raw gas sensor proxy (ppm), >= 0
        normalized_aqi: Normalized air quality index, >= 0
    """
    timestamp: int
    sensor_ppm: float
    normalized_aqi: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire/storage dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reading":
        """Build a reading from a stored row or wire dictionary."""
        return cls(
            timestamp=int(data["timestamp"]),
            sensor_ppm=float(data["sensor_ppm"]),
            normalized_aqi=float(data["normalized_aqi"]),
        )
