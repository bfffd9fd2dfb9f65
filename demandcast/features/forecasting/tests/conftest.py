"""Test fixtures for forecasting module."""

import numpy as np
import pytest

from demandcast.features.forecasting.schemas import (
    ArimaModelConfig,
    HoltWintersModelConfig,
    SarimaModelConfig,
    TrainingSeries,
)


@pytest.fixture
def drift_series() -> list[float]:
    """Two weeks of alternating values with an upward drift of ~0.5/day."""
    return [10.0, 12.0, 11.0, 13.0, 12.0, 14.0, 13.0, 15.0, 14.0, 16.0, 15.0, 17.0, 16.0, 18.0]


@pytest.fixture
def sample_seasonal_series() -> np.ndarray:
    """Create sample time series with weekly pattern.

    Returns 28 days (4 weeks) of data with a clear weekly pattern:
    Week pattern: [10, 20, 30, 40, 50, 60, 70] repeated.
    """
    weekly_pattern = np.array([10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0])
    return np.tile(weekly_pattern, 4)  # 4 weeks = 28 days


@pytest.fixture
def sample_constant_series() -> np.ndarray:
    """Create constant time series (100 for 60 days)."""
    return np.full(60, 100.0, dtype=np.float64)


@pytest.fixture
def sample_linear_series() -> np.ndarray:
    """Create sequential values (1, 2, ..., 30)."""
    return np.arange(1, 31, dtype=np.float64)


@pytest.fixture
def dated_series(drift_series) -> TrainingSeries:
    """Drift series labelled with consecutive days starting 2024-01-01."""
    dates = [f"2024-01-{day:02d}" for day in range(1, len(drift_series) + 1)]
    return TrainingSeries(values=drift_series, dates=dates)


@pytest.fixture
def sample_arima_config() -> ArimaModelConfig:
    """Create ARIMA(2,1,2) configuration."""
    return ArimaModelConfig(schema_version="1.0", model_type="arima", p=2, d=1, q=2)


@pytest.fixture
def sample_sarima_config() -> SarimaModelConfig:
    """Create SARIMA(1,1,1)(1,1,1)[7] configuration."""
    return SarimaModelConfig(schema_version="1.0", model_type="sarima")


@pytest.fixture
def sample_hw_config() -> HoltWintersModelConfig:
    """Create Holt-Winters configuration with weekly seasonality."""
    return HoltWintersModelConfig(schema_version="1.0", model_type="holt_winters")

