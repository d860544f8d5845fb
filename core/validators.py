"""
Live Payload Normalization

This module turns arbitrary JSON-like messages from the live feed
into canonical Readings. The feed is not under our control, so
normalization is permissive about shape and strict about types:

- Missing or falsy fields fall back to defaults
  (timestamp -> now, sensor_ppm -> 0, normalized_aqi -> 0)
- Field aliases are accepted (mq135_ppm / sensor_ppm, normalized_aqi / aqi)
- Values that cannot be read as numbers make the whole message malformed
- Non-object payloads are malformed

Malformed messages raise TransportError; the stream ingest layer
logs and drops them without touching its state.
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from .exceptions import TransportError
from .reading import Reading, now_ms

logger = logging.getLogger(__name__)

# Accepted field names, in priority order
PPM_FIELDS: Tuple[str, ...] = ("mq135_ppm", "sensor_ppm")
AQI_FIELDS: Tuple[str, ...] = ("normalized_aqi", "aqi")

# Timestamps are stored as signed 64-bit integers
TIMESTAMP_MIN = -(2 ** 63)
TIMESTAMP_MAX = 2 ** 63 - 1


def _first_truthy(raw: Dict[str, Any], names: Tuple[str, ...]) -> Any:
    for name in names:
        value = raw.get(name)
        if value:
            return value
    return None


def _as_number(value: Any, field_name: str) -> float:
    # bool is an int subclass but never a sensor value
    if isinstance(value, bool):
        raise TransportError(f"Field '{field_name}' is not numeric: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise TransportError(f"Field '{field_name}' is not numeric: {value!r}")
    if number != number or number in (float("inf"), float("-inf")):
        raise TransportError(f"Field '{field_name}' is not finite: {value!r}")
    return number


def _as_timestamp(value: Any) -> int:
    # ints are kept exact, never routed through float
    if isinstance(value, int) and not isinstance(value, bool):
        timestamp = value
    else:
        timestamp = int(_as_number(value, "timestamp"))
    if not TIMESTAMP_MIN <= timestamp <= TIMESTAMP_MAX:
        raise TransportError(f"Timestamp out of range: {value!r}")
    return timestamp


def normalize_payload(raw: Any, now: Optional[int] = None) -> Reading:
    """
    Normalize a decoded live message into a Reading.

    Args:
        raw: Decoded JSON value
        now: Fallback timestamp in epoch ms (defaults to wall clock)

    Returns:
        Canonical Reading

    Raises:
        TransportError: If the payload is not an object or holds
            non-numeric values, or a timestamp outside the 64-bit range
    """
    if not isinstance(raw, dict):
        raise TransportError(f"Expected a JSON object, got {type(raw).__name__}")

    timestamp = raw.get("timestamp")
    if timestamp:
        timestamp = _as_timestamp(timestamp)
    else:
        timestamp = now if now is not None else now_ms()

    ppm = _first_truthy(raw, PPM_FIELDS)
    aqi = _first_truthy(raw, AQI_FIELDS)

    return Reading(
        timestamp=timestamp,
        sensor_ppm=max(0.0, _as_number(ppm, "sensor_ppm")) if ppm else 0.0,
        normalized_aqi=max(0.0, _as_number(aqi, "normalized_aqi")) if aqi else 0.0,
    )


def parse_live_message(text: Any, now: Optional[int] = None) -> Reading:
    """
    Decode a raw live-feed message and normalize it.

    Args:
        text: Message body (str or bytes)
        now: Fallback timestamp in epoch ms

    Raises:
        TransportError: If the message is not valid JSON or not a
            usable reading payload
    """
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise TransportError(f"Unparseable live message: {e}", payload=str(text)[:200])
    return normalize_payload(raw, now)
