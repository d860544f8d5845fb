"""
API Routes Module

This module contains all API endpoint implementations organized by function:
- acquisition.py: Mode control, packets, ticks and the live feed
- forecast.py: Forecasting and self-checks
- query.py: Stored reading queries
- replay.py: Seeding history for replay

All routers are combined in main.py to create the complete API.
"""

from .acquisition import router as acquisition_router
from .forecast import router as forecast_router
from .query import router as query_router
from .replay import router as replay_router

__all__ = [
    "acquisition_router",
    "forecast_router",
    "query_router",
    "replay_router",
]
