"""Forecasting service for the fit -> validate -> forecast workflow.

Orchestrates:
- Hold-out split of the training series
- Model instantiation via factory (one owned instance per fit)
- Accuracy validation on the held-out tail
- Future forecast with date labels

CRITICAL: Predictors are never shared. Every fit gets a fresh instance so
concurrent requests and grouped runs hold no common state.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import date, timedelta
from typing import TYPE_CHECKING

import structlog

from demandcast.core.config import get_settings
from demandcast.core.exceptions import BadRequestError
from demandcast.core.logging import log_context
from demandcast.features.forecasting.models import model_factory
from demandcast.features.forecasting.schemas import (
    AccuracyMetrics,
    ForecastResult,
    ForecastRunResponse,
    TrainingSeries,
)

if TYPE_CHECKING:
    from demandcast.features.forecasting.schemas import ModelConfig

logger = structlog.get_logger()


def future_dates(dates: list[str] | None, horizon: int) -> list[str] | None:
    """ISO labels for the ``horizon`` days following the last training date.

    Returns:
        List of ``horizon`` ISO dates, or None when there are no dates or the
        last one is not an ISO date.
    """
    if not dates:
        return None
    try:
        last = date.fromisoformat(dates[-1][:10])
    except ValueError:
        return None
    return [(last + timedelta(days=k)).isoformat() for k in range(1, horizon + 1)]


class ForecastingService:
    """Service running forecasting workflows on in-memory series.

    CRITICAL: All operations use Settings for reproducibility.
    """

    def __init__(self) -> None:
        """Initialize the forecasting service."""
        self.settings = get_settings()

    def resolve_test_size(self, n_observations: int, test_size: int | None) -> int:
        """Number of trailing observations held out for validation.

        Defaults to round(n * forecast_test_ratio) and is clamped so that at
        least forecast_min_train_size observations remain for training.

        Args:
            n_observations: Length of the full series.
            test_size: Requested hold-out (None = ratio default, 0 = none).

        Returns:
            Hold-out size in [0, n - min_train_size].
        """
        if test_size is None:
            test_size = round(n_observations * self.settings.forecast_test_ratio)
        max_test = max(0, n_observations - max(1, self.settings.forecast_min_train_size))
        return max(0, min(test_size, max_test))

    def run_forecast(
        self,
        series: TrainingSeries,
        config: ModelConfig,
        horizon: int | None = None,
        test_size: int | None = None,
    ) -> ForecastRunResponse:
        """Fit, validate on the held-out tail, then forecast the future.

        Every log event emitted during the run, including the predictors'
        own events, carries the run's model_type and config_hash.

        Args:
            series: Full training series.
            config: Model configuration.
            horizon: Number of future steps (None = forecast_default_horizon).
            test_size: Held-out tail length (None = settings ratio).

        Returns:
            ForecastRunResponse with forecast and hold-out accuracy.

        Raises:
            BadRequestError: If horizon is outside [1, forecast_max_horizon].
        """
        if horizon is None:
            horizon = self.settings.forecast_default_horizon
        if not 1 <= horizon <= self.settings.forecast_max_horizon:
            raise BadRequestError(
                message=(
                    f"horizon must be between 1 and {self.settings.forecast_max_horizon}, "
                    f"got {horizon}"
                ),
                details={"horizon": horizon},
            )

        config_hash = config.config_hash()
        with log_context(model_type=config.model_type, config_hash=config_hash):
            return self._run(series, config, config_hash, horizon, test_size)

    def _run(
        self,
        series: TrainingSeries,
        config: ModelConfig,
        config_hash: str,
        horizon: int,
        test_size: int | None,
    ) -> ForecastRunResponse:
        start_time = time.perf_counter()
        n = len(series.values)
        n_test = self.resolve_test_size(n, test_size)
        n_train = n - n_test

        logger.info(
            "forecasting.run_started",
            n_observations=n,
            n_test=n_test,
            horizon=horizon,
        )

        accuracy: AccuracyMetrics | None = None
        if n_test > 0:
            train = TrainingSeries(
                values=series.values[:n_train],
                dates=series.dates[:n_train] if series.dates is not None else None,
            )
            validation_model = model_factory(
                config, random_state=self.settings.forecast_random_seed
            )
            validation_model.fit(train)
            accuracy = validation_model.validate(series.values[n_train:])

        model = model_factory(config, random_state=self.settings.forecast_random_seed)
        model.fit(series)
        forecast = self._label_dates(model.predict(horizon), series.dates)

        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "forecasting.run_completed",
            model_name=forecast.model_name,
            n_train=n_train,
            n_test=n_test,
            horizon=horizon,
            accuracy_percentage=accuracy.accuracy_percentage if accuracy else None,
            duration_ms=duration_ms,
        )

        return ForecastRunResponse(
            model_type=config.model_type,
            model_name=forecast.model_name,
            config_hash=config_hash,
            forecast=forecast,
            accuracy=accuracy,
            n_train=n_train,
            n_test=n_test,
            duration_ms=duration_ms,
        )

    def run_grouped(
        self,
        groups: Mapping[str, TrainingSeries],
        config: ModelConfig,
        horizon: int | None = None,
        test_size: int | None = None,
    ) -> dict[str, ForecastRunResponse]:
        """Run one independent forecast per group (e.g. per store).

        Args:
            groups: Group key -> series.
            config: Model configuration shared by every group.
            horizon: Number of future steps.
            test_size: Held-out tail length per group.

        Returns:
            Group key -> ForecastRunResponse, in input order.
        """
        results: dict[str, ForecastRunResponse] = {}
        for key, series in groups.items():
            with log_context(group=key):
                results[key] = self.run_forecast(series, config, horizon, test_size)
        logger.info(
            "forecasting.grouped_run_completed",
            model_type=config.model_type,
            n_groups=len(results),
        )
        return results

    @staticmethod
    def _label_dates(result: ForecastResult, dates: list[str] | None) -> ForecastResult:
        labels = future_dates(dates, len(result.forecasts))
        if labels is None:
            return result
        forecasts = [
            point.model_copy(update={"date": label})
            for point, label in zip(result.forecasts, labels, strict=True)
        ]
        return result.model_copy(update={"forecasts": forecasts})
