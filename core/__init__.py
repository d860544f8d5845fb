"""
Core Module - AQI Digital Twin

This module contains the framework-agnostic domain logic:
- Reading shape and rounding helpers
- Live payload normalization
- AQI categories and advisories
- Short-horizon forecasting (heuristic + optional external predictor)
- Configuration and the exception hierarchy

These components are used by both the acquisition engine and the API.
"""

from .reading import Reading, now_ms, round_half_up
from .validators import normalize_payload, parse_live_message
from .air_quality import AQICategory, AQIAssessment, assess_aqi, classify_aqi
from .forecast import (
    ForecastEngine,
    ForecasterStatus,
    ForecastSource,
    HeuristicParameters,
    PredictionResult,
)
from .predictors import ExternalPredictor, HttpTextPredictor
from .exceptions import (
    AQIEngineError,
    PersistenceUnavailable,
    PredictorFailure,
    TransportError,
)

__all__ = [
    # Readings
    "Reading",
    "now_ms",
    "round_half_up",

    # Normalization
    "normalize_payload",
    "parse_live_message",

    # AQI categories
    "AQICategory",
    "AQIAssessment",
    "assess_aqi",
    "classify_aqi",

    # Forecasting
    "ForecastEngine",
    "ForecasterStatus",
    "ForecastSource",
    "HeuristicParameters",
    "PredictionResult",
    "ExternalPredictor",
    "HttpTextPredictor",

    # Errors
    "AQIEngineError",
    "PersistenceUnavailable",
    "PredictorFailure",
    "TransportError",
]

__version__ = "0.1.0"
