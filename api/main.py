"""
AQI Digital Twin - FastAPI Application

Entry point of the HTTP service. The lifespan builds the acquisition
engine, the reading store and the forecaster once per process; route
modules reach them through the ``get_services`` dependency.

Run locally with:
    uvicorn api.main:app --reload

Interactive documentation is served at /docs and /redoc.
"""

import os
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorResponse, SystemHealth
from api.routes import acquisition_router, forecast_router, query_router, replay_router
from api.services import Services, build_services, get_services, start_services, stop_services
from core.config import get_settings
from core.exceptions import PersistenceUnavailable

API_VERSION = "0.1.0"
API_PREFIX = "/api/v1"
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# =========================================
# Logging Configuration
# =========================================

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =========================================
# Application Lifespan
# =========================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds the engine stack on startup and releases it on shutdown.
    A store that fails to open does not prevent startup; the engine
    runs in-memory only.
    """
    logger.info("🚀 Starting AQI Digital Twin API...")
    settings = get_settings()

    services = build_services(settings)
    app.state.services = services
    await start_services(services, settings)

    logger.info(f"✅ AQI Digital Twin API started in {services.engine.mode.value} mode")
    logger.info("📚 API Documentation: http://localhost:8000/docs")

    yield  # Application runs here

    logger.info("👋 Shutting down AQI Digital Twin API...")
    await stop_services(services)


# =========================================
# FastAPI Application
# =========================================

app = FastAPI(
    title="AQI Digital Twin API",
    description="""
## Air Quality Acquisition & Forecasting

This API produces a continuous stream of air-quality readings and
short-horizon forecasts.

### Acquisition Modes

- **Live**: latest message from a WebSocket sensor feed
- **Simulation**: synthetic readings (sine baseline, noise, pollution spikes)
- **Replay**: cycles through the most recent 1000 stored readings

Readings from live and simulation modes are stored automatically.

### Forecasting

Each forecast projects the next 5 AQI values with a confidence score,
using a damped momentum / mean-reversion heuristic, optionally
corrected by an external model.

### Quick Start

1. **Check API health**: `GET /health`
2. **Seed history**: `POST /api/v1/replay/seed`
3. **Switch to replay**: `PUT /api/v1/acquisition/mode`
4. **Run a tick**: `POST /api/v1/acquisition/tick`
    """,
    version=API_VERSION,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# =========================================
# CORS Middleware
# =========================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================
# Exception Handlers
# =========================================

def error_body(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, status_code=status_code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return error_body(exc.status_code, str(exc.detail))


@app.exception_handler(PersistenceUnavailable)
async def persistence_exception_handler(request, exc):
    """A store failure that escaped a route is reported as 503, not 500."""
    logger.error(f"Reading store failure on {request.url.path}: {exc}")
    return error_body(status.HTTP_503_SERVICE_UNAVAILABLE, "Reading store unavailable")


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    return error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        detail=str(exc) if DEBUG else None,
    )


# =========================================
# Include Routers
# =========================================

for router in (acquisition_router, forecast_router, query_router, replay_router):
    app.include_router(router, prefix=API_PREFIX)


# =========================================
# Root Endpoints
# =========================================

@app.get(
    "/",
    tags=["System"],
    summary="API Root",
    description="Welcome endpoint with API information"
)
async def root():
    """API root endpoint."""
    return {
        "name": "AQI Digital Twin API",
        "version": API_VERSION,
        "description": "Air quality acquisition and short-horizon forecasting",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": API_PREFIX
    }


@app.get(
    "/health",
    response_model=SystemHealth,
    tags=["System"],
    summary="System Health Check",
    description="Check the health status of the API and its dependencies"
)
async def health_check(services: Services = Depends(get_services)):
    """System health check endpoint."""
    store_health = await services.store.health()
    engine_status = services.engine.status()

    overall_status = "ok" if store_health["status"] == "healthy" else "degraded"

    return SystemHealth(
        status=overall_status,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        database=store_health["status"],
        components={
            "api": "ok",
            "reading_store": store_health["status"],
            "acquisition_mode": engine_status["mode"],
            "live_feed": "connected" if engine_status["live_connected"] else "disconnected",
            "forecaster": services.forecaster.status.value,
            "tick_loop": "running" if services.tick_task and not services.tick_task.done() else "stopped",
        }
    )


@app.get(
    "/ready",
    tags=["System"],
    summary="Readiness Check",
    description="Check if the API is ready to receive traffic"
)
async def readiness_check(services: Services = Depends(get_services)):
    """
    Kubernetes-style readiness probe.

    The engine serves packets without a store, so readiness only
    requires the stack to be built.
    """
    return {"ready": True, "store_available": services.engine.store_ready}


@app.get(
    "/live",
    tags=["System"],
    summary="Liveness Check",
    description="Check if the API process is alive"
)
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}


# =========================================
# Development/Debug Endpoints
# =========================================

if DEBUG:

    @app.get("/debug/engine", tags=["Debug"])
    async def debug_engine(services: Services = Depends(get_services)):
        """Show engine internals (debug only)."""
        return services.engine.status()


# =========================================
# Run with Uvicorn (for development)
# =========================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", 8000)),
        reload=os.getenv("API_RELOAD", "true").lower() == "true",
        log_level=get_settings().log_level.lower()
    )
