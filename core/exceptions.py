"""
Exception hierarchy for the AQI acquisition and forecasting engine.

These errors are raised inside adapters (live feed, persistence,
external predictor) and caught at the engine boundary, so that
packet production and forecasting never fail from the caller's
point of view.
"""

from typing import Optional


class AQIEngineError(Exception):
    """Base class for all engine errors."""


class TransportError(AQIEngineError):
    """Malformed live payload or live socket failure."""

    def __init__(self, message: str, payload: Optional[str] = None):
        super().__init__(message)
        self.payload = payload


class PersistenceUnavailable(AQIEngineError):
    """The reading store could not be opened or an operation failed."""


class PredictorFailure(AQIEngineError):
    """The external forecaster raised, timed out or returned a malformed response."""
