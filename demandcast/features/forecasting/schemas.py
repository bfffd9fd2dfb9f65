"""Pydantic schemas for forecasting configuration, results and API contracts.

Model configs are designed to be:
- Immutable (frozen=True) for reproducibility
- Versioned (schema_version) so stored runs can be compared
- Hashable (config_hash) for deduplication in run logs
"""

from __future__ import annotations

import hashlib
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# =============================================================================
# Model Configuration Schemas
# =============================================================================


class ModelConfigBase(BaseModel):
    """Base configuration for all forecasting models.

    All model configs inherit from this base to ensure:
    - Immutability after creation (frozen=True)
    - No extra fields allowed (extra="forbid")
    - Schema versioning for reproducibility
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    schema_version: str = Field(
        default="1.0",
        description="Semantic version of this config schema",
        pattern=r"^\d+\.\d+(\.\d+)?$",
    )

    def config_hash(self) -> str:
        """Generate deterministic hash of configuration.

        Returns:
            16-character hex string hash of config JSON.
        """
        config_json = self.model_dump_json()
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]


class ArimaModelConfig(ModelConfigBase):
    """Configuration for the ARIMA-like forecaster.

    Attributes:
        p: Autoregressive order.
        d: Differencing order.
        q: Moving-average order.
    """

    model_type: Literal["arima"] = "arima"
    p: int = Field(default=2, ge=0, le=10, description="AR order")
    d: int = Field(default=1, ge=0, le=3, description="Differencing order")
    q: int = Field(default=2, ge=0, le=10, description="MA order")


class SarimaModelConfig(ModelConfigBase):
    """Configuration for the seasonal (SARIMA-like) forecaster.

    The seasonal_p/seasonal_q orders are carried for display only; the
    forecast is shaped by seasonal_d and seasonal_period through
    pre-differencing.
    """

    model_type: Literal["sarima"] = "sarima"
    p: int = Field(default=1, ge=0, le=10, description="AR order")
    d: int = Field(default=1, ge=0, le=3, description="Differencing order")
    q: int = Field(default=1, ge=0, le=10, description="MA order")
    seasonal_p: int = Field(default=1, ge=0, le=10, description="Seasonal AR order")
    seasonal_d: int = Field(default=1, ge=0, le=3, description="Seasonal differencing order")
    seasonal_q: int = Field(default=1, ge=0, le=10, description="Seasonal MA order")
    seasonal_period: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Seasonality period in days",
    )


class HoltWintersModelConfig(ModelConfigBase):
    """Configuration for the multiplicative Holt-Winters forecaster.

    Attributes:
        alpha: Level smoothing factor.
        beta: Trend smoothing factor.
        gamma: Seasonal smoothing factor.
        seasonal_period: Length of the seasonal index vector.
    """

    model_type: Literal["holt_winters"] = "holt_winters"
    alpha: float = Field(default=0.3, ge=0.0, le=1.0, description="Level smoothing")
    beta: float = Field(default=0.2, ge=0.0, le=1.0, description="Trend smoothing")
    gamma: float = Field(default=0.1, ge=0.0, le=1.0, description="Seasonal smoothing")
    seasonal_period: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Seasonality period in days",
    )


class TrendMovingAverageModelConfig(ModelConfigBase):
    """Configuration for the moving-average-with-trend baseline.

    Window size is derived from the series length (n // 10, clamped to
    [3, 10]), so there is nothing to tune.
    """

    model_type: Literal["trend_moving_average"] = "trend_moving_average"


class TimeLLMModelConfig(ModelConfigBase):
    """Configuration for the LLM-backed forecaster.

    Attributes:
        context_points: Recent observations sent in the prompt
            (defaults to llm_context_points from settings).
        llm_model: Chat model name (defaults to llm_model from settings).
    """

    model_type: Literal["time_llm"] = "time_llm"
    context_points: int | None = Field(default=None, ge=1, le=200)
    llm_model: str | None = Field(default=None, min_length=1)


# Union type for all model configs
ModelConfig = Annotated[
    ArimaModelConfig
    | SarimaModelConfig
    | HoltWintersModelConfig
    | TrendMovingAverageModelConfig
    | TimeLLMModelConfig,
    Field(discriminator="model_type"),
]


# =============================================================================
# Series and Result Schemas
# =============================================================================


class TrainingSeries(BaseModel):
    """Ordered observations with optional parallel date labels.

    Order is time order and is never changed.

    Attributes:
        values: Observed values.
        dates: Date labels, same length as values when present.
    """

    values: list[float] = Field(..., min_length=1)
    dates: list[str] | None = None

    @model_validator(mode="after")
    def validate_dates_length(self) -> TrainingSeries:
        """Ensure dates and values line up."""
        if self.dates is not None and len(self.dates) != len(self.values):
            raise ValueError(
                f"dates and values must have same length: {len(self.dates)} vs {len(self.values)}"
            )
        return self


class ForecastPoint(BaseModel):
    """Single forecast step.

    Invariant: 0 <= confidence_lower <= predicted_value <= confidence_upper.

    Attributes:
        step: 1-based forecast step.
        predicted_value: Point forecast.
        confidence_lower: Lower bound of the heuristic interval.
        confidence_upper: Upper bound of the heuristic interval.
        confidence_level: Declared trust score, non-increasing in step.
        date: ISO date label when training dates were provided.
    """

    step: int = Field(..., ge=1)
    predicted_value: float
    confidence_lower: float
    confidence_upper: float
    confidence_level: float = Field(..., ge=0.0, le=1.0)
    date: str | None = None


class ForecastResult(BaseModel):
    """Output of a single predict() call.

    Attributes:
        forecasts: Forecast points ordered by step.
        model_name: Display name including orders, e.g. "ARIMA(2,1,2)".
        parameters: Free-form diagnostics for display.
        fit_quality: Heuristic goodness of fit in [0, 1].
    """

    forecasts: list[ForecastPoint]
    model_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    fit_quality: float

    @property
    def predicted_values(self) -> list[float]:
        """Point forecasts in step order."""
        return [point.predicted_value for point in self.forecasts]


class AccuracyMetrics(BaseModel):
    """Accuracy of predictions against held-out actuals.

    Attributes:
        mae: Mean absolute error.
        mse: Mean squared error.
        rmse: Root mean squared error.
        mape: Mean absolute percentage error (0-100 scale).
        r2: Coefficient of determination.
        accuracy_percentage: max(0, 100 - mape).
    """

    mae: float = 0.0
    mse: float = 0.0
    rmse: float = 0.0
    mape: float = 0.0
    r2: float = 0.0
    accuracy_percentage: float = 0.0


# =============================================================================
# API Request/Response Schemas
# =============================================================================


class ForecastRunRequest(BaseModel):
    """Request body for POST /forecasting/run.

    Attributes:
        series: Training observations.
        config: Model configuration.
        horizon: Number of future steps (None = FORECAST_DEFAULT_HORIZON).
        test_size: Held-out tail length (None = settings ratio, 0 = no hold-out).
    """

    series: TrainingSeries
    config: ModelConfig
    horizon: int | None = Field(default=None, ge=1, le=365, description="Days to forecast ahead")
    test_size: int | None = Field(default=None, ge=0)


class CsvForecastRequest(BaseModel):
    """Request body for POST /forecasting/run-csv.

    Attributes:
        target_column: Numeric column to forecast.
        date_column: Column holding date labels.
        filters: Equality filters applied before extraction (e.g. Store ID).
        config: Model configuration.
        horizon: Number of future steps (None = FORECAST_DEFAULT_HORIZON).
        test_size: Held-out tail length.
    """

    target_column: str = Field(..., min_length=1)
    date_column: str | None = "Date"
    filters: dict[str, str | int | float] | None = None
    config: ModelConfig
    horizon: int | None = Field(default=None, ge=1, le=365)
    test_size: int | None = Field(default=None, ge=0)


class GroupedCsvForecastRequest(CsvForecastRequest):
    """Request body for POST /forecasting/run-csv-grouped.

    Attributes:
        group_by: Columns identifying a group, e.g. ["Store ID", "Category"].
    """

    group_by: list[str] = Field(..., min_length=1)


class ForecastRunResponse(BaseModel):
    """Result of the fit -> validate -> forecast workflow.

    Attributes:
        model_type: Model type literal.
        model_name: Display name of the fitted model.
        config_hash: Hash of the configuration used.
        forecast: Future forecast.
        accuracy: Metrics on the held-out tail (None when no hold-out).
        n_train: Observations used for the validation fit.
        n_test: Held-out observations.
        duration_ms: Wall time of the workflow.
    """

    model_type: str
    model_name: str
    config_hash: str
    forecast: ForecastResult
    accuracy: AccuracyMetrics | None = None
    n_train: int
    n_test: int
    duration_ms: float


class GroupedForecastRunResponse(BaseModel):
    """Response body for POST /forecasting/run-csv-grouped.

    Attributes:
        groups: Group key -> workflow result, in first-appearance order.
    """

    groups: dict[str, ForecastRunResponse]


class ModelInfo(BaseModel):
    """One entry of GET /forecasting/models."""

    model_type: str
    default_config: dict[str, Any]


class ModelsResponse(BaseModel):
    """Response body for GET /forecasting/models."""

    models: list[ModelInfo]


class DataPreviewResponse(BaseModel):
    """Response body for GET /data/preview.

    Attributes:
        headers: Column names in file order.
        rows: First rows as column -> value mappings.
        total_rows: Number of data rows in the file.
    """

    headers: list[str]
    rows: list[dict[str, Any]]
    total_rows: int
