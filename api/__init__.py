"""
API Module - FastAPI Backend

This module provides the REST API for the AQI Digital Twin.
It wires the acquisition engine, the reading store and the
forecaster together and exposes them over HTTP.

Key Components:
- main.py: FastAPI application and root endpoints
- models.py: Pydantic schemas for request/response validation
- database.py: Reading store (SQLAlchemy asyncio)
- services.py: Engine stack construction and lifespan wiring
- routes/: API endpoint implementations

Endpoints:
- PUT /api/v1/acquisition/mode: Switch acquisition mode
- GET /api/v1/acquisition/packet: Get one reading
- POST /api/v1/acquisition/tick: Reading + forecast
- POST /api/v1/forecast: Forecast from a history window
- GET /api/v1/query/readings: Recent stored readings
- POST /api/v1/replay/seed: Seed synthetic history
"""

__version__ = "0.1.0"
