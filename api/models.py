"""
Pydantic Models for API Request/Response Validation

This module defines all the data models used by the API for:
- Request body validation
- Response serialization
- Documentation generation (OpenAPI/Swagger)

All models use Pydantic v2 syntax for validation and serialization.
"""

import math
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from engine.modes import AcquisitionMode


MAX_HISTORY = 50


# =========================================
# Reading Models
# =========================================

class ReadingModel(BaseModel):
    """A single timestamped AQI sample (wire shape)."""
    timestamp: int = Field(..., description="Epoch milliseconds (unique key)")
    sensor_ppm: float = Field(..., description="Raw gas sensor proxy (ppm)", ge=0)
    normalized_aqi: float = Field(..., description="Normalized air quality index", ge=0)


class PacketResponse(BaseModel):
    """One acquisition packet with its AQI category."""
    reading: ReadingModel
    mode: AcquisitionMode
    category: str = Field(..., description="AQI category band")
    advisory: str


# =========================================
# Mode Control Models
# =========================================

class ModeRequest(BaseModel):
    """Request to switch acquisition mode."""
    mode: AcquisitionMode = Field(..., description="live, simulation or replay")

    class Config:
        json_schema_extra = {
            "example": {"mode": "replay"}
        }


class ModeResponse(BaseModel):
    """Current acquisition mode and related state."""
    mode: AcquisitionMode
    generation: int
    replay_size: int
    store_available: bool


class LiveConnectRequest(BaseModel):
    """Request to connect the live WebSocket feed."""
    url: str = Field(..., min_length=1, description="WebSocket URL (ws:// or wss://)")

    @field_validator("url")
    @classmethod
    def check_scheme(cls, v: str) -> str:
        if not v.startswith(("ws://", "wss://", "http://", "https://")):
            raise ValueError("url must use ws://, wss://, http:// or https://")
        return v


class LiveStatusResponse(BaseModel):
    """Live feed connection status."""
    connected: bool
    url: Optional[str] = None
    messages_received: int
    messages_dropped: int
    latest: Optional[ReadingModel] = None


# =========================================
# Forecast Models
# =========================================

class ForecastRequest(BaseModel):
    """
    Request to forecast from a history window.

    If ``history`` is omitted, the server-side window filled by
    the tick endpoint is used.
    """
    history: Optional[List[float]] = Field(
        default=None,
        description="Recent AQI values, oldest first",
        max_length=MAX_HISTORY
    )

    @field_validator("history")
    @classmethod
    def check_finite(cls, v: Optional[List[float]]) -> Optional[List[float]]:
        if v is not None and not all(math.isfinite(x) for x in v):
            raise ValueError("history values must be finite numbers")
        return v

    class Config:
        json_schema_extra = {
            "example": {"history": [100, 102, 105, 108, 110]}
        }


class ForecastResponse(BaseModel):
    """Short-horizon forecast."""
    current: float
    prediction_curve: List[float] = Field(..., min_length=5, max_length=5)
    confidence: float = Field(..., ge=0, le=1)
    source: str = Field(..., description="heuristic, external or fallback")
    forecaster_status: str


class TickResponse(BaseModel):
    """Result of one acquisition + forecast tick."""
    reading: ReadingModel
    prediction: ForecastResponse
    mode: AcquisitionMode
    category: str
    inference_ms: float
    history_length: int


class DiagnosticCheck(BaseModel):
    name: str
    passed: bool
    detail: str


class DiagnosticsResponse(BaseModel):
    """Self-check results."""
    passed: bool
    checks: List[DiagnosticCheck]


# =========================================
# Query Models
# =========================================

class ReadingListResponse(BaseModel):
    """Recent stored readings, oldest first."""
    count: int
    readings: List[ReadingModel]


class ReadingCountResponse(BaseModel):
    count: int


# =========================================
# Replay Seeding Models
# =========================================

class SeedRequest(BaseModel):
    """Request to seed the store with synthetic history."""
    count: int = Field(default=300, description="Number of readings", ge=1, le=5000)
    interval_ms: int = Field(default=1000, description="Spacing between readings", ge=1)
    start_ms: Optional[int] = Field(
        default=None,
        description="Timestamp of the first reading (defaults so the series ends now)",
        ge=0
    )


class SeedResponse(BaseModel):
    inserted: int
    start_ms: int
    end_ms: int


# =========================================
# System Status Models
# =========================================

class SystemHealth(BaseModel):
    """System health check response."""
    status: str = Field(..., description="ok or degraded")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time")
    database: str = Field(..., description="Reading store status")
    components: Dict[str, Any] = Field(
        default_factory=dict,
        description="Status of system components"
    )


class ErrorResponse(BaseModel):
    """Uniform error body returned by every exception handler."""
    error: bool = True
    message: str
    status_code: int
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
