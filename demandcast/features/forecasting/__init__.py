"""Forecasting module for statistical and LLM-backed demand models.

This module provides a unified fit/predict/validate interface over a closed
family of forecasters: ARIMA-like, seasonal (SARIMA-like), Holt-Winters,
moving average with trend, and an optional chat-completion forecaster.

Exports:
    Models:
        - BaseForecaster: Abstract base class for all forecasters
        - ArimaForecaster: Recursive AR/MA forecaster on a differenced series
        - SarimaForecaster: Seasonal pre-differencing around ArimaForecaster
        - HoltWintersForecaster: Multiplicative triple exponential smoothing
        - TrendMovingAverageForecaster: Moving average with trend
        - model_factory, create_forecaster: Build forecasters

    Numerics:
        - difference, seasonal_difference
        - estimate_ar, estimate_ma
        - MetricsCalculator, score

    Schemas:
        - ModelConfig: Union of all model configurations
        - TrainingSeries, ForecastPoint, ForecastResult, AccuracyMetrics

    Service:
        - ForecastingService: fit -> validate -> forecast workflow
"""

from demandcast.features.forecasting.differencing import difference, seasonal_difference
from demandcast.features.forecasting.estimation import estimate_ar, estimate_ma
from demandcast.features.forecasting.metrics import MetricsCalculator, score
from demandcast.features.forecasting.models import (
    ArimaForecaster,
    BaseForecaster,
    HoltWintersForecaster,
    SarimaForecaster,
    TrendMovingAverageForecaster,
    create_forecaster,
    model_factory,
)
from demandcast.features.forecasting.schemas import (
    AccuracyMetrics,
    ArimaModelConfig,
    ForecastPoint,
    ForecastResult,
    ForecastRunRequest,
    ForecastRunResponse,
    HoltWintersModelConfig,
    ModelConfig,
    ModelConfigBase,
    SarimaModelConfig,
    TimeLLMModelConfig,
    TrainingSeries,
    TrendMovingAverageModelConfig,
)
from demandcast.features.forecasting.service import ForecastingService

__all__ = [
    # Models
    "ArimaForecaster",
    "BaseForecaster",
    "HoltWintersForecaster",
    "SarimaForecaster",
    "TrendMovingAverageForecaster",
    "create_forecaster",
    "model_factory",
    # Numerics
    "MetricsCalculator",
    "difference",
    "estimate_ar",
    "estimate_ma",
    "score",
    "seasonal_difference",
    # Schemas
    "AccuracyMetrics",
    "ArimaModelConfig",
    "ForecastPoint",
    "ForecastResult",
    "ForecastRunRequest",
    "ForecastRunResponse",
    "HoltWintersModelConfig",
    "ModelConfig",
    "ModelConfigBase",
    "SarimaModelConfig",
    "TimeLLMModelConfig",
    "TrainingSeries",
    "TrendMovingAverageModelConfig",
    # Service
    "ForecastingService",
]
