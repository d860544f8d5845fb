"""
Runtime configuration read from the environment.

All settings have working defaults so the service starts with no
environment at all: a local SQLite file for persistence, simulation
mode, and the heuristic forecaster only.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./aqi_readings.db"
VALID_MODES = ("live", "simulation", "replay")


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    initial_mode: str
    live_feed_url: Optional[str]
    predictor_url: Optional[str]
    predictor_api_token: Optional[str]
    predictor_timeout_seconds: float
    random_seed: Optional[int]
    tick_interval_ms: int
    history_size: int


def _read_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_int(name: str, default: Optional[int], minimum: int = 0) -> Optional[int]:
    candidate = _read_optional(name)
    if candidate is None:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_float(name: str, default: float) -> float:
    candidate = _read_optional(name)
    if candidate is None:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_mode(default: str) -> str:
    candidate = _read_str("INITIAL_MODE", default).lower()
    return candidate if candidate in VALID_MODES else default


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=_read_str("DATABASE_URL", DEFAULT_DATABASE_URL),
        log_level=_read_str("LOG_LEVEL", "INFO").upper(),
        initial_mode=_read_mode("simulation"),
        live_feed_url=_read_optional("LIVE_FEED_URL"),
        predictor_url=_read_optional("PREDICTOR_URL"),
        predictor_api_token=_read_optional("PREDICTOR_API_TOKEN"),
        predictor_timeout_seconds=_read_float("PREDICTOR_TIMEOUT_SECONDS", 5.0),
        random_seed=_read_int("RANDOM_SEED", None, minimum=-(2 ** 63)),
        tick_interval_ms=_read_int("TICK_INTERVAL_MS", 0),
        history_size=_read_int("HISTORY_SIZE", 50, minimum=1),
    )
