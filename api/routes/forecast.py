"""
Forecast Endpoints

This module exposes the short-horizon AQI forecaster.

Key Features:
- 5-step forecast with confidence from a supplied or server-side history
- Forecaster status (heuristic / active / degraded)
- Start-up style self-checks (inference latency, store connectivity)
"""

import logging
import time

from fastapi import APIRouter, Depends

from api.models import (
    DiagnosticCheck,
    DiagnosticsResponse,
    ForecastRequest,
    ForecastResponse,
)
from api.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forecast", tags=["Forecasting"])

# Reference series and latency budget for the inference self-check
DIAGNOSTIC_HISTORY = [100.0, 102.0, 105.0, 108.0, 110.0]
INFERENCE_BUDGET_MS = 200.0


@router.post(
    "",
    response_model=ForecastResponse,
    summary="Forecast the next 5 AQI values",
    description="""
    Project the next 5 AQI values from up to 50 recent values.

    Confidence depends on the path used:
    - **heuristic**: 0.85-0.95
    - **external**: 0.88
    - **fallback** (external output unusable): 0.6
    """
)
async def forecast(
    request: ForecastRequest,
    services: Services = Depends(get_services)
):
    history = request.history
    if history is None:
        history = services.pipeline.history.values()
    result = await services.forecaster.predict(history)
    return ForecastResponse(
        **result.to_dict(),
        forecaster_status=services.forecaster.status.value,
    )


@router.get(
    "/status",
    summary="Forecaster status"
)
async def forecaster_status(services: Services = Depends(get_services)):
    forecaster = services.forecaster
    return {
        "status": forecaster.status.value,
        "external_configured": forecaster.predictor is not None,
        "last_failure": forecaster.last_failure,
    }


@router.get(
    "/diagnostics",
    response_model=DiagnosticsResponse,
    summary="Run self-checks"
)
async def diagnostics(services: Services = Depends(get_services)):
    """
    Run the system self-checks:
    1. Inference on a reference series completes within budget
    2. The reading store is connected
    """
    checks = []

    started = time.perf_counter()
    result = await services.forecaster.predict(DIAGNOSTIC_HISTORY)
    elapsed_ms = (time.perf_counter() - started) * 1000
    checks.append(DiagnosticCheck(
        name="inference_time",
        passed=elapsed_ms < INFERENCE_BUDGET_MS and len(result.prediction_curve) == 5,
        detail=f"{elapsed_ms:.2f}ms (budget {INFERENCE_BUDGET_MS:.0f}ms)",
    ))

    store_health = await services.store.health()
    checks.append(DiagnosticCheck(
        name="reading_store",
        passed=store_health["status"] == "healthy",
        detail=store_health["status"],
    ))

    for check in checks:
        logger.info(f"Self-check {check.name}: {'PASS' if check.passed else 'FAIL'} ({check.detail})")

    return DiagnosticsResponse(
        passed=all(c.passed for c in checks),
        checks=checks,
    )
