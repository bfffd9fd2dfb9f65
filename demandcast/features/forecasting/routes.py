"""Forecasting API routes for running models on in-memory or CSV series."""

from fastapi import APIRouter, status
from starlette.concurrency import run_in_threadpool

from demandcast.core.config import get_settings
from demandcast.core.exceptions import BadRequestError
from demandcast.core.logging import get_logger
from demandcast.features.data.loader import load_grouped_series, load_series
from demandcast.features.forecasting.schemas import (
    ArimaModelConfig,
    CsvForecastRequest,
    ForecastRunRequest,
    ForecastRunResponse,
    GroupedCsvForecastRequest,
    GroupedForecastRunResponse,
    HoltWintersModelConfig,
    ModelInfo,
    ModelsResponse,
    SarimaModelConfig,
    TimeLLMModelConfig,
    TrendMovingAverageModelConfig,
)
from demandcast.features.forecasting.service import ForecastingService

logger = get_logger(__name__)

router = APIRouter(prefix="/forecasting", tags=["forecasting"])


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available forecasting models",
)
async def list_models() -> ModelsResponse:
    """List model types with their default configurations.

    Returns:
        One entry per model type.
    """
    defaults = [
        ArimaModelConfig(),
        SarimaModelConfig(),
        HoltWintersModelConfig(),
        TrendMovingAverageModelConfig(),
        TimeLLMModelConfig(),
    ]
    return ModelsResponse(
        models=[
            ModelInfo(model_type=config.model_type, default_config=config.model_dump())
            for config in defaults
        ]
    )


@router.post(
    "/run",
    response_model=ForecastRunResponse,
    status_code=status.HTTP_200_OK,
    summary="Fit, validate and forecast a series",
    description="""
Fit a model on the provided series, score it on the held-out tail and
forecast `horizon` future steps.

**Model Types:**
- `arima`: ARIMA-like recursive forecaster (p, d, q)
- `sarima`: Seasonal pre-differencing around the ARIMA forecaster
- `holt_winters`: Multiplicative triple exponential smoothing
- `trend_moving_average`: Moving average with trend and weekly adjustment
- `time_llm`: Chat-completion model (falls back when unavailable)

**Hold-out:** `test_size` defaults to `FORECAST_TEST_RATIO` of the series;
`0` disables validation.
""",
)
async def run_forecast(request: ForecastRunRequest) -> ForecastRunResponse:
    """Run the forecasting workflow on an in-memory series.

    Args:
        request: Series, model config, horizon and hold-out size.

    Returns:
        Forecast with hold-out accuracy.

    Raises:
        BadRequestError: If the workflow rejects the inputs.
    """
    logger.info(
        "forecasting.run_request_received",
        model_type=request.config.model_type,
        n_observations=len(request.series.values),
        horizon=request.horizon,
    )

    service = ForecastingService()
    try:
        return await run_in_threadpool(
            service.run_forecast,
            request.series,
            request.config,
            request.horizon,
            request.test_size,
        )
    except ValueError as e:
        logger.warning(
            "forecasting.run_request_failed",
            model_type=request.config.model_type,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise BadRequestError(message=str(e)) from e


@router.post(
    "/run-csv",
    response_model=ForecastRunResponse,
    status_code=status.HTTP_200_OK,
    summary="Fit, validate and forecast a column of the inventory CSV",
)
async def run_csv_forecast(request: CsvForecastRequest) -> ForecastRunResponse:
    """Run the forecasting workflow on a column of the configured CSV.

    Args:
        request: Target column, filters, model config and horizon.

    Returns:
        Forecast with hold-out accuracy.

    Raises:
        NotFoundError: If the CSV file does not exist.
        ValidationError: If a column is unknown or has no numeric values.
        BadRequestError: If the workflow rejects the inputs.
    """
    settings = get_settings()
    logger.info(
        "forecasting.csv_run_request_received",
        model_type=request.config.model_type,
        target_column=request.target_column,
        filters=request.filters,
        horizon=request.horizon,
    )

    series = await run_in_threadpool(
        load_series,
        settings.forecast_data_path,
        request.target_column,
        request.date_column,
        request.filters,
    )

    service = ForecastingService()
    try:
        return await run_in_threadpool(
            service.run_forecast,
            series,
            request.config,
            request.horizon,
            request.test_size,
        )
    except ValueError as e:
        logger.warning(
            "forecasting.csv_run_request_failed",
            model_type=request.config.model_type,
            target_column=request.target_column,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise BadRequestError(message=str(e)) from e


@router.post(
    "/run-csv-grouped",
    response_model=GroupedForecastRunResponse,
    status_code=status.HTTP_200_OK,
    summary="Forecast a CSV column once per group",
    description="""
Split the configured CSV by `group_by` (e.g. `["Store ID"]`) and run the
workflow on each group with its own model instance. Groups keep the order
in which they first appear in the file; multi-column keys are joined
with `/`.
""",
)
async def run_csv_grouped_forecast(
    request: GroupedCsvForecastRequest,
) -> GroupedForecastRunResponse:
    """Run the forecasting workflow per group of the configured CSV.

    Args:
        request: Target column, grouping columns, filters, config and horizon.

    Returns:
        One workflow result per group.

    Raises:
        NotFoundError: If the CSV file does not exist.
        ValidationError: If a column is unknown or every group is empty.
        BadRequestError: If the workflow rejects the inputs.
    """
    settings = get_settings()
    logger.info(
        "forecasting.grouped_run_request_received",
        model_type=request.config.model_type,
        target_column=request.target_column,
        group_by=request.group_by,
        horizon=request.horizon,
    )

    groups = await run_in_threadpool(
        load_grouped_series,
        settings.forecast_data_path,
        request.target_column,
        request.group_by,
        request.date_column,
        request.filters,
    )

    service = ForecastingService()
    try:
        results = await run_in_threadpool(
            service.run_grouped,
            groups,
            request.config,
            request.horizon,
            request.test_size,
        )
    except ValueError as e:
        logger.warning(
            "forecasting.grouped_run_request_failed",
            model_type=request.config.model_type,
            group_by=request.group_by,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise BadRequestError(message=str(e)) from e
    return GroupedForecastRunResponse(groups=results)
