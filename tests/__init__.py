"""
Test Suite for AQI Digital Twin

This module contains tests for:
- Synthetic generation (test_generator.py)
- Live payload normalization and stream ingest (test_validators.py, test_stream.py)
- Replay buffer and mode state machine (test_replay.py, test_modes.py)
- Data engine facade (test_data_engine.py)
- Forecasting and external predictors (test_forecast.py, test_predictors.py)
- AQI categories and configuration (test_air_quality.py, test_config.py)
- Acquisition pipeline (test_pipeline.py)
- Reading store (test_database.py)
- API endpoints (test_api.py)

Run tests with:
    pytest tests/ -v
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
