"""Forecasting models with a unified fit/predict/validate interface.

All forecasters implement a common interface:
- fit(series) -> self
- predict(steps) -> ForecastResult
- validate(actual) -> AccuracyMetrics
- get_params() -> dict

State is created by fit(), replaced by every later fit() and only read by
predict(). One instance serves one fit/predict/validate chain; concurrent
forecasts (e.g. one per store) each build their own instance.

CRITICAL: Numeric degeneracies (short series, zero variance) fall back to
documented constants instead of raising. Only caller-contract violations
(empty series in strict mode, steps < 1, predict before fit) raise.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import structlog
from pydantic import TypeAdapter

from demandcast.features.forecasting.differencing import difference, seasonal_difference
from demandcast.features.forecasting.estimation import estimate_ar, estimate_ma
from demandcast.features.forecasting.metrics import MetricsCalculator
from demandcast.features.forecasting.schemas import (
    AccuracyMetrics,
    ForecastPoint,
    ForecastResult,
    TrainingSeries,
)

if TYPE_CHECKING:
    from demandcast.features.forecasting.schemas import ModelConfig

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]
SeriesInput = TrainingSeries | Sequence[float] | FloatArray

CONFIDENCE_CEILING = 0.95
CONFIDENCE_FLOOR = 0.6
CONFIDENCE_DECAY_PER_STEP = 0.02
Z_95 = 1.96
HOLT_WINTERS_UNCERTAINTY_SCALE = 10.0
HOLT_WINTERS_FIT_QUALITY = 0.8


def decayed_confidence(step: int) -> float:
    """Confidence level for a forecast step: max(0.6, 0.95 - 0.02 * step)."""
    return max(CONFIDENCE_FLOOR, CONFIDENCE_CEILING - step * CONFIDENCE_DECAY_PER_STEP)


def round_half_up(value: float) -> float:
    """Round to cents with ties rounded up, e.g. 0.125 -> 0.13.

    Built-in round() sends ties to even (0.125 -> 0.12).
    """
    return float(np.floor(value * 100 + 0.5) / 100)


def build_forecast_point(
    step: int,
    value: float,
    half_width: float,
    confidence_level: float,
) -> ForecastPoint:
    """Build a rounded forecast point with a symmetric interval.

    The lower bound is clamped at 0 because demand cannot be negative.
    Rounding to cents is monotone, so lower <= value <= upper survives it.

    Args:
        step: 1-based forecast step.
        value: Non-negative point forecast.
        half_width: Non-negative interval half-width.
        confidence_level: Declared confidence for this step.

    Returns:
        ForecastPoint.
    """
    return ForecastPoint(
        step=step,
        predicted_value=round_half_up(value),
        confidence_lower=max(0.0, round_half_up(value - half_width)),
        confidence_upper=round_half_up(value + half_width),
        confidence_level=confidence_level,
    )


def population_std(values: Sequence[float] | FloatArray) -> float:
    """Population standard deviation, 1.0 for an empty sequence."""
    if len(values) == 0:
        return 1.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


def population_variance(values: Sequence[float] | FloatArray) -> float:
    """Population variance, 1.0 for an empty sequence."""
    if len(values) == 0:
        return 1.0
    return float(np.var(np.asarray(values, dtype=np.float64)))


class BaseForecaster(ABC):
    """Abstract base class for all forecasting models.

    Attributes:
        name: Model family name.
        random_state: Random seed for reproducibility.
        strict: When True, fitting an empty series raises ValueError;
            when False it is a no-op that leaves the model unfitted.
    """

    name: str = "base"

    def __init__(
        self,
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the forecaster.

        Args:
            random_state: Random seed for reproducibility.
            strict: Reject empty training series.
            logger: Observability hook; defaults to the module logger.
        """
        self.random_state = random_state
        self.strict = strict
        self._logger = logger if logger is not None else structlog.get_logger()
        self._is_fitted = False

    @abstractmethod
    def fit(self, series: SeriesInput) -> BaseForecaster:
        """Fit the model on historical data.

        Args:
            series: TrainingSeries or 1D sequence of observations.

        Returns:
            self (for method chaining).

        Raises:
            ValueError: If series is empty and strict is True.
        """

    @abstractmethod
    def predict(self, steps: int) -> ForecastResult:
        """Forecast the next ``steps`` observations.

        Args:
            steps: Number of future steps (>= 1).

        Returns:
            ForecastResult with exactly ``steps`` points.

        Raises:
            RuntimeError: If model has not been fitted.
            ValueError: If steps < 1.
        """

    @abstractmethod
    def get_params(self) -> dict[str, Any]:
        """Get model parameters (scikit-learn convention)."""

    def set_params(self, **params: Any) -> BaseForecaster:  # noqa: ANN401
        """Set model parameters (scikit-learn convention).

        Fitted state is discarded; call fit() again before predict().

        Args:
            **params: Parameter names and values to set.

        Returns:
            self (for method chaining).
        """
        for key, value in params.items():
            setattr(self, key, value)
        if params:
            self._is_fitted = False
        return self

    def validate(self, actual: Sequence[float] | FloatArray) -> AccuracyMetrics:
        """Forecast len(actual) steps and score them against actual.

        Args:
            actual: Held-out observations following the training series.

        Returns:
            AccuracyMetrics (all zeros for an empty actual).
        """
        if not self.is_fitted:
            raise RuntimeError("Model must be fitted before validate")
        if len(actual) == 0:
            return AccuracyMetrics()
        result = self.predict(len(actual))
        return MetricsCalculator().score(actual, result.predicted_values)

    @property
    def is_fitted(self) -> bool:
        """Check if the model has been fitted.

        Returns:
            True if fit() has been called successfully.
        """
        return self._is_fitted

    def _coerce_series(self, series: SeriesInput) -> FloatArray | None:
        """Convert fit input to a float array, enforcing the empty-series policy.

        Returns:
            The values, or None when the fit should be a no-op.
        """
        raw = series.values if isinstance(series, TrainingSeries) else series
        values = np.asarray(raw, dtype=np.float64)
        if values.ndim != 1:
            raise ValueError(f"series must be 1D, got shape {values.shape}")
        if len(values) == 0:
            if self.strict:
                raise ValueError("Cannot fit on empty series")
            self._logger.warning("forecasting.fit_skipped_empty_series", model=self.name)
            return None
        return values

    def _check_can_predict(self, steps: int) -> None:
        if not self._is_fitted:
            raise RuntimeError("Model must be fitted before predict")
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")


class ArimaForecaster(BaseForecaster):
    """ARIMA-like forecaster with simplified coefficient estimation.

    fit:
        1. difference the series d times
        2. estimate AR(p) coefficients and MA(q) stub coefficients
        3. compute one-step residuals from index max(p, q) using the AR term

    predict:
        y_hat[s] = max(0, y[n-1] + AR(window) + MA(residuals))

    CRITICAL: Every step is re-based on the same last observed value; only
    the window of differenced values evolves. Predictions are not
    cumulatively integrated.

    Attributes:
        p: AR order.
        d: Differencing order.
        q: MA order.
    """

    name = "ARIMA"

    def __init__(
        self,
        p: int = 2,
        d: int = 1,
        q: int = 2,
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the ARIMA-like forecaster.

        Args:
            p: AR order.
            d: Differencing order.
            q: MA order.
            random_state: Random seed (unused but kept for interface).
            strict: Reject empty training series.
            logger: Observability hook.

        Raises:
            ValueError: If any order is negative.
        """
        super().__init__(random_state, strict, logger)
        if min(p, d, q) < 0:
            raise ValueError(f"p, d, q must be >= 0, got ({p}, {d}, {q})")
        self.p = p
        self.d = d
        self.q = q
        self._original: FloatArray = np.array([], dtype=np.float64)
        self._differenced: FloatArray = np.array([], dtype=np.float64)
        self._ar_params: list[float] = []
        self._ma_params: list[float] = []
        self._residuals: list[float] = []
        self._fitted_values: list[float] = []
        self._residual_std = 1.0
        self._fit_quality = 0.0

    def fit(self, series: SeriesInput) -> ArimaForecaster:
        """Difference, estimate coefficients and compute residuals.

        Args:
            series: Training observations.

        Returns:
            self (for method chaining).
        """
        values = self._coerce_series(series)
        if values is None:
            return self

        self._original = values.copy()
        self._differenced = difference(values, self.d)
        self._ar_params = estimate_ar(self._differenced, self.p)
        self._ma_params = estimate_ma(self._differenced, self.q)
        self._compute_residuals()
        self._residual_std = population_std(self._residuals)
        self._fit_quality = self._compute_fit_quality()
        self._is_fitted = True

        self._logger.debug(
            "forecasting.fit_completed",
            model=self.model_name,
            n_observations=len(values),
            n_residuals=len(self._residuals),
            fit_quality=self._fit_quality,
        )
        return self

    def predict(self, steps: int) -> ForecastResult:
        """Recursively forecast ``steps`` future values.

        Args:
            steps: Number of future steps.

        Returns:
            ForecastResult with intervals widening as sqrt(step).
        """
        self._check_can_predict(steps)

        window = max(self.p, self.q)
        recent = self._differenced[-window:] if window else self._differenced
        last_values: deque[float] = deque((float(v) for v in recent), maxlen=window)
        recent_residuals = self._residuals[-self.q :] if self.q else self._residuals
        last_residuals: deque[float] = deque(recent_residuals, maxlen=self.q)
        anchor = float(self._original[-1])

        forecasts: list[ForecastPoint] = []
        for step in range(1, steps + 1):
            ar_contribution = sum(
                self._ar_params[j] * last_values[-1 - j]
                for j in range(min(self.p, len(last_values)))
            )
            ma_contribution = sum(
                self._ma_params[j] * last_residuals[-1 - j]
                for j in range(min(self.q, len(last_residuals)))
            )
            predicted_diff = ar_contribution + ma_contribution
            predicted_value = max(0.0, anchor + predicted_diff)

            if step <= 3:
                self._logger.debug(
                    "forecasting.arima_step",
                    step=step,
                    ar_contribution=ar_contribution,
                    ma_contribution=ma_contribution,
                    predicted_diff=predicted_diff,
                    anchor=anchor,
                    predicted_value=predicted_value,
                )

            half_width = self._residual_std * math.sqrt(step) * Z_95
            forecasts.append(
                build_forecast_point(step, predicted_value, half_width, decayed_confidence(step))
            )

            # Future residuals are assumed to be zero
            last_values.append(predicted_diff)
            last_residuals.append(0.0)

        return ForecastResult(
            forecasts=forecasts,
            model_name=self.model_name,
            parameters={
                "ar_params": list(self._ar_params),
                "ma_params": list(self._ma_params),
                "p": self.p,
                "d": self.d,
                "q": self.q,
                "residual_std": self._residual_std,
            },
            fit_quality=self._fit_quality,
        )

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Dictionary with p, d, q and random_state.
        """
        return {"p": self.p, "d": self.d, "q": self.q, "random_state": self.random_state}

    @property
    def model_name(self) -> str:
        """Display name, e.g. ARIMA(2,1,2)."""
        return f"ARIMA({self.p},{self.d},{self.q})"

    @property
    def residual_std(self) -> float:
        """Population std of fit residuals (1.0 when there are none)."""
        return self._residual_std

    @property
    def fit_quality(self) -> float:
        """max(0, 1 - residual MSE / variance of the differenced series)."""
        return self._fit_quality

    def _compute_residuals(self) -> None:
        self._residuals = []
        self._fitted_values = []
        for t in range(max(self.p, self.q), len(self._differenced)):
            fitted = sum(self._ar_params[i] * self._differenced[t - i - 1] for i in range(self.p))
            self._fitted_values.append(float(fitted))
            self._residuals.append(float(self._differenced[t] - fitted))

    def _compute_fit_quality(self) -> float:
        if not self._residuals:
            return 0.0
        residual_mse = float(np.mean(np.square(self._residuals)))
        variance = population_variance(self._differenced)
        if variance <= 0:
            return 0.0
        return max(0.0, 1.0 - residual_mse / variance)


class SarimaForecaster(BaseForecaster):
    """Seasonal forecaster wrapping an owned ArimaForecaster.

    fit() seasonally differences (seasonal_d passes at lag seasonal_period),
    then differences d times, then fits the inner model on the result. The
    inner model applies its own d differencing on top.

    predict() delegates to the inner model and only relabels the result;
    seasonal_p/seasonal_q are display parameters.

    Attributes:
        seasonal_p: Seasonal AR order (display only).
        seasonal_d: Seasonal differencing order.
        seasonal_q: Seasonal MA order (display only).
        seasonal_period: Seasonal lag.
    """

    name = "SARIMA"

    def __init__(
        self,
        p: int = 1,
        d: int = 1,
        q: int = 1,
        seasonal_p: int = 1,
        seasonal_d: int = 1,
        seasonal_q: int = 1,
        seasonal_period: int = 7,
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the seasonal forecaster.

        Raises:
            ValueError: If seasonal_period < 1 or any order is negative.
        """
        super().__init__(random_state, strict, logger)
        if seasonal_period < 1:
            raise ValueError(f"seasonal_period must be >= 1, got {seasonal_period}")
        if min(seasonal_p, seasonal_d, seasonal_q) < 0:
            raise ValueError("seasonal orders must be >= 0")
        self._arima = ArimaForecaster(
            p=p, d=d, q=q, random_state=random_state, strict=strict, logger=self._logger
        )
        self.seasonal_p = seasonal_p
        self.seasonal_d = seasonal_d
        self.seasonal_q = seasonal_q
        self.seasonal_period = seasonal_period

    @property
    def p(self) -> int:
        return self._arima.p

    @property
    def d(self) -> int:
        return self._arima.d

    @property
    def q(self) -> int:
        return self._arima.q

    @property
    def is_fitted(self) -> bool:
        """Check if the inner model has been fitted."""
        return self._arima.is_fitted

    def fit(self, series: SeriesInput) -> SarimaForecaster:
        """Seasonally pre-difference then fit the inner ARIMA model.

        When the series is too short for the seasonal stage to leave any
        data, the inner model is fit on the raw series instead.

        Args:
            series: Training observations.

        Returns:
            self (for method chaining).
        """
        values = self._coerce_series(series)
        if values is None:
            return self

        seasonally_differenced = seasonal_difference(
            values, self.seasonal_d, self.seasonal_period
        )
        prepared = difference(seasonally_differenced, self.d)
        if len(prepared) == 0:
            self._logger.warning(
                "forecasting.sarima_seasonal_stage_skipped",
                n_observations=len(values),
                seasonal_period=self.seasonal_period,
                seasonal_d=self.seasonal_d,
            )
            prepared = values

        self._arima.fit(prepared)
        self._is_fitted = True
        return self

    def predict(self, steps: int) -> ForecastResult:
        """Delegate to the inner model and relabel with seasonal orders.

        Args:
            steps: Number of future steps.

        Returns:
            ForecastResult named SARIMA(p,d,q)(P,D,Q)[s].
        """
        result = self._arima.predict(steps)
        return result.model_copy(
            update={
                "model_name": self.model_name,
                "parameters": {
                    **result.parameters,
                    "seasonal_p": self.seasonal_p,
                    "seasonal_d": self.seasonal_d,
                    "seasonal_q": self.seasonal_q,
                    "seasonal_period": self.seasonal_period,
                },
            }
        )

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Dictionary with non-seasonal and seasonal orders and random_state.
        """
        return {
            "p": self.p,
            "d": self.d,
            "q": self.q,
            "seasonal_p": self.seasonal_p,
            "seasonal_d": self.seasonal_d,
            "seasonal_q": self.seasonal_q,
            "seasonal_period": self.seasonal_period,
            "random_state": self.random_state,
        }

    def set_params(self, **params: Any) -> SarimaForecaster:  # noqa: ANN401
        """Set parameters, routing p/d/q to the inner model.

        Any change unfits both this wrapper and the inner model.
        """
        inner = {k: params.pop(k) for k in ("p", "d", "q") if k in params}
        if inner or params:
            self._arima.set_params(**inner)
            self._arima._is_fitted = False
        super().set_params(**params)
        return self

    @property
    def model_name(self) -> str:
        """Display name, e.g. SARIMA(1,1,1)(1,1,1)[7]."""
        return (
            f"SARIMA({self.p},{self.d},{self.q})"
            f"({self.seasonal_p},{self.seasonal_d},{self.seasonal_q})[{self.seasonal_period}]"
        )


class HoltWintersForecaster(BaseForecaster):
    """Multiplicative Holt-Winters (triple exponential smoothing).

    Update order per observation i >= 1 (k = i mod period):
        level    = alpha * y[i] / S[k] + (1 - alpha) * (level' + trend')
        trend    = beta * (level - level') + (1 - beta) * trend'
        S[k]     = gamma * y[i] / level + (1 - gamma) * S[k]
        fitted_i = (level' + trend') * S'[k]   (pre-update seasonal factor)

    Forecast: y_hat[s] = max(0, (level + trend * s) * S[(n_fitted + s - 1) mod period])

    CRITICAL: The interval half-width is a fixed sqrt(s) * 10, not derived
    from residuals.

    Attributes:
        alpha: Level smoothing factor.
        beta: Trend smoothing factor.
        gamma: Seasonal smoothing factor.
        seasonal_period: Length of the seasonal index vector.
    """

    name = "Holt-Winters"

    def __init__(
        self,
        alpha: float = 0.3,
        beta: float = 0.2,
        gamma: float = 0.1,
        seasonal_period: int = 7,
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the Holt-Winters forecaster.

        Raises:
            ValueError: If seasonal_period < 1.
        """
        super().__init__(random_state, strict, logger)
        if seasonal_period < 1:
            raise ValueError(f"seasonal_period must be >= 1, got {seasonal_period}")
        self.alpha = alpha
        self.beta = beta
        self.gamma = gamma
        self.seasonal_period = seasonal_period
        self._level = 0.0
        self._trend = 0.0
        self._seasonal: FloatArray = np.ones(seasonal_period, dtype=np.float64)
        self._fitted_values: list[float] = []

    def fit(self, series: SeriesInput) -> HoltWintersForecaster:
        """Run the smoothing recursions over the series.

        Args:
            series: Training observations.

        Returns:
            self (for method chaining).
        """
        values = self._coerce_series(series)
        if values is None:
            return self

        period = self.seasonal_period
        self._level = float(values[0])
        self._trend = 0.0
        self._seasonal = np.ones(period, dtype=np.float64)
        self._fitted_values = []

        # Initial seasonal indices: phase means relative to the first value
        if len(values) >= 2 * period and self._level != 0:
            for i in range(period):
                self._seasonal[i] = float(np.mean(values[i::period])) / self._level

        for i in range(1, len(values)):
            value = float(values[i])
            season_index = i % period
            prev_level = self._level
            prev_trend = self._trend
            prev_seasonal = float(self._seasonal[season_index])

            deseasonalized = value / prev_seasonal if prev_seasonal != 0 else value
            self._level = self.alpha * deseasonalized + (1 - self.alpha) * (prev_level + prev_trend)
            self._trend = self.beta * (self._level - prev_level) + (1 - self.beta) * prev_trend
            ratio = value / self._level if self._level != 0 else prev_seasonal
            self._seasonal[season_index] = self.gamma * ratio + (1 - self.gamma) * prev_seasonal

            self._fitted_values.append((prev_level + prev_trend) * prev_seasonal)

        self._is_fitted = True
        self._logger.debug(
            "forecasting.fit_completed",
            model=self.name,
            n_observations=len(values),
            level=self._level,
            trend=self._trend,
        )
        return self

    def predict(self, steps: int) -> ForecastResult:
        """Project level and trend forward and apply seasonal indices.

        Args:
            steps: Number of future steps.

        Returns:
            ForecastResult.
        """
        self._check_can_predict(steps)

        n_fitted = len(self._fitted_values)
        forecasts: list[ForecastPoint] = []
        for step in range(1, steps + 1):
            season_index = (n_fitted + step - 1) % self.seasonal_period
            base_value = self._level + self._trend * step
            predicted_value = max(0.0, base_value * float(self._seasonal[season_index]))
            half_width = math.sqrt(step) * HOLT_WINTERS_UNCERTAINTY_SCALE
            forecasts.append(
                build_forecast_point(step, predicted_value, half_width, decayed_confidence(step))
            )

        return ForecastResult(
            forecasts=forecasts,
            model_name=self.name,
            parameters={
                "alpha": self.alpha,
                "beta": self.beta,
                "gamma": self.gamma,
                "level": self._level,
                "trend": self._trend,
                "seasonal_period": self.seasonal_period,
                "seasonal_strength": self.seasonal_strength,
            },
            fit_quality=HOLT_WINTERS_FIT_QUALITY,
        )

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Dictionary with smoothing factors, seasonal_period and random_state.
        """
        return {
            "alpha": self.alpha,
            "beta": self.beta,
            "gamma": self.gamma,
            "seasonal_period": self.seasonal_period,
            "random_state": self.random_state,
        }

    @property
    def level(self) -> float:
        return self._level

    @property
    def trend(self) -> float:
        return self._trend

    @property
    def seasonal(self) -> list[float]:
        """Copy of the seasonal index vector."""
        return [float(s) for s in self._seasonal]

    @property
    def fitted_values(self) -> list[float]:
        """One-step-ahead fitted values for observations 1..n-1."""
        return list(self._fitted_values)

    @property
    def seasonal_strength(self) -> float:
        """Spread of the seasonal indices: max(S) - min(S)."""
        return float(np.max(self._seasonal) - np.min(self._seasonal))


class TrendMovingAverageForecaster(BaseForecaster):
    """Moving average with linear trend and a weekly sinusoidal adjustment.

    Formula:
        f[s] = ma + trend * s
        f[s] += f[s] * cv_weekly * sin(2 * pi * s / 7) * 0.1

    where ma is the mean of the last w = clamp(n // 10, 3, 10) values, trend
    is the half-window mean difference divided by the first half's length,
    and cv_weekly is the coefficient of variation of the 7 weekday-phase
    means (0 for fewer than 14 observations).
    """

    name = "Trend Moving Average"

    WEEK = 7
    MIN_WINDOW = 3
    MAX_WINDOW = 10
    SEASONAL_WEIGHT = 0.1
    UNCERTAINTY_SCALE = 0.5
    CONFIDENCE_DECAY_PER_STEP = 0.05

    def __init__(
        self,
        random_state: int = 42,
        strict: bool = True,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        super().__init__(random_state, strict, logger)
        self._mean = 0.0
        self._std = 0.0
        self._window_size = 0
        self._moving_average = 0.0
        self._trend = 0.0
        self._seasonality_factor = 0.0
        self._n_observations = 0
        self._fit_quality = 0.0

    def fit(self, series: SeriesInput) -> TrendMovingAverageForecaster:
        """Compute summary statistics of the series.

        Args:
            series: Training observations.

        Returns:
            self (for method chaining).
        """
        values = self._coerce_series(series)
        if values is None:
            return self

        n = len(values)
        self._n_observations = n
        self._mean = float(np.mean(values))
        self._std = float(np.std(values))
        self._window_size = min(max(self.MIN_WINDOW, n // 10), self.MAX_WINDOW)
        recent = values[-self._window_size :]
        self._moving_average = float(np.mean(recent))

        self._trend = 0.0
        if len(recent) >= 2:
            half = len(recent) // 2
            first_half, second_half = recent[:half], recent[half:]
            self._trend = float(np.mean(second_half) - np.mean(first_half)) / len(first_half)

        self._seasonality_factor = self.detect_seasonality(values)

        variance = float(np.var(values))
        recent_mse = float(np.mean((recent - self._moving_average) ** 2))
        self._fit_quality = max(0.0, 1.0 - recent_mse / variance) if variance > 0 else 0.0

        self._is_fitted = True
        return self

    def predict(self, steps: int) -> ForecastResult:
        """Extrapolate the moving average along the trend.

        Args:
            steps: Number of future steps.

        Returns:
            ForecastResult.
        """
        self._check_can_predict(steps)

        forecasts: list[ForecastPoint] = []
        for step in range(1, steps + 1):
            value = self._moving_average + self._trend * step
            adjustment = (
                self._seasonality_factor
                * math.sin((step / self.WEEK) * 2 * math.pi)
                * self.SEASONAL_WEIGHT
            )
            value += adjustment * value
            half_width = self._std * math.sqrt(step) * self.UNCERTAINTY_SCALE
            confidence = max(
                CONFIDENCE_FLOOR,
                min(CONFIDENCE_CEILING, 1 - step * self.CONFIDENCE_DECAY_PER_STEP),
            )
            forecasts.append(build_forecast_point(step, max(0.0, value), half_width, confidence))

        return ForecastResult(
            forecasts=forecasts,
            model_name=self.name,
            parameters={
                "historical_mean": round_half_up(self._mean),
                "historical_std": round_half_up(self._std),
                "recent_average": round_half_up(self._moving_average),
                "trend_per_day": round_half_up(self._trend),
                "seasonality_factor": self._seasonality_factor,
                "data_points": self._n_observations,
                "window_size": self._window_size,
            },
            fit_quality=self._fit_quality,
        )

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Dictionary with random_state.
        """
        return {"random_state": self.random_state}

    @classmethod
    def detect_seasonality(cls, values: FloatArray) -> float:
        """Coefficient of variation of weekday-phase means.

        Args:
            values: Observations in time order.

        Returns:
            std(phase_means) / mean(phase_means); 0 for short series or a
            zero mean.
        """
        if len(values) < 2 * cls.WEEK:
            return 0.0
        phase_means = np.array([np.mean(values[i :: cls.WEEK]) for i in range(cls.WEEK)])
        pattern_mean = float(np.mean(phase_means))
        if pattern_mean == 0:
            return 0.0
        return float(np.std(phase_means)) / pattern_mean


# Type alias for model type literals
ModelType = Literal["arima", "sarima", "holt_winters", "trend_moving_average", "time_llm"]

MODEL_TYPES: tuple[str, ...] = (
    "arima",
    "sarima",
    "holt_winters",
    "trend_moving_average",
    "time_llm",
)

MODEL_TYPE_ALIASES: dict[str, str] = {
    "autoregressive": "arima",
    "seasonal": "sarima",
    "exponential_smoothing": "holt_winters",
    "holt-winters": "holt_winters",
    "holtwinters": "holt_winters",
    "trend-moving-average": "trend_moving_average",
    "moving_average": "trend_moving_average",
    "time-llm": "time_llm",
    "llm": "time_llm",
}

# Original dashboard parameter names (camelCase) mapped to config fields
PARAM_ALIASES: dict[str, str] = {
    "seasonalP": "seasonal_p",
    "seasonalD": "seasonal_d",
    "seasonalQ": "seasonal_q",
    "seasonalPeriod": "seasonal_period",
    "contextPoints": "context_points",
    "llmModel": "llm_model",
}


def model_factory(
    config: ModelConfig,
    random_state: int = 42,
    strict: bool | None = None,
    logger: structlog.typing.FilteringBoundLogger | None = None,
) -> BaseForecaster:
    """Create a forecaster instance from a configuration.

    Args:
        config: Model configuration.
        random_state: Random seed for reproducibility.
        strict: Empty-series policy (defaults to forecast_strict_inputs).
        logger: Observability hook passed to the forecaster.

    Returns:
        Instantiated, unfitted forecaster.

    Raises:
        ValueError: If model_type is unknown.
    """
    from demandcast.core.config import get_settings
    from demandcast.features.forecasting.schemas import (
        ArimaModelConfig,
        HoltWintersModelConfig,
        SarimaModelConfig,
        TimeLLMModelConfig,
        TrendMovingAverageModelConfig,
    )

    if strict is None:
        strict = get_settings().forecast_strict_inputs
    common: dict[str, Any] = {"random_state": random_state, "strict": strict, "logger": logger}

    if isinstance(config, ArimaModelConfig):
        return ArimaForecaster(p=config.p, d=config.d, q=config.q, **common)
    elif isinstance(config, SarimaModelConfig):
        return SarimaForecaster(
            p=config.p,
            d=config.d,
            q=config.q,
            seasonal_p=config.seasonal_p,
            seasonal_d=config.seasonal_d,
            seasonal_q=config.seasonal_q,
            seasonal_period=config.seasonal_period,
            **common,
        )
    elif isinstance(config, HoltWintersModelConfig):
        return HoltWintersForecaster(
            alpha=config.alpha,
            beta=config.beta,
            gamma=config.gamma,
            seasonal_period=config.seasonal_period,
            **common,
        )
    elif isinstance(config, TrendMovingAverageModelConfig):
        return TrendMovingAverageForecaster(**common)
    elif isinstance(config, TimeLLMModelConfig):
        from demandcast.features.forecasting.llm import TimeLLMForecaster

        return TimeLLMForecaster(
            context_points=config.context_points,
            llm_model=config.llm_model,
            **common,
        )
    else:
        raise ValueError(f"Unknown model type: {getattr(config, 'model_type', config)!r}")


def normalize_model_type(model_type: str) -> str:
    """Resolve a model-kind string (including aliases) to a model_type literal.

    Raises:
        ValueError: If the kind is unknown.
    """
    key = model_type.strip().lower()
    key = MODEL_TYPE_ALIASES.get(key, key)
    if key not in MODEL_TYPES:
        raise ValueError(f"Unknown model type: {model_type!r}. Available: {list(MODEL_TYPES)}")
    return key


def build_model_config(model_type: str, params: Mapping[str, Any] | None = None) -> ModelConfig:
    """Validate a model kind plus a free-form parameter bag into a config.

    Args:
        model_type: Model kind or alias (e.g. "autoregressive", "holt-winters").
        params: Parameters in snake_case or the dashboard's camelCase.

    Returns:
        Frozen model configuration.

    Raises:
        ValueError: On unknown kinds or invalid parameters (pydantic's
            ValidationError is a ValueError).
    """
    from demandcast.features.forecasting.schemas import ModelConfig as ModelConfigType

    payload: dict[str, Any] = {PARAM_ALIASES.get(k, k): v for k, v in (params or {}).items()}
    payload["model_type"] = normalize_model_type(model_type)
    adapter: TypeAdapter[Any] = TypeAdapter(ModelConfigType)
    config: ModelConfig = adapter.validate_python(payload)
    return config


def create_forecaster(
    model_type: str,
    params: Mapping[str, Any] | None = None,
    random_state: int = 42,
    strict: bool | None = None,
    logger: structlog.typing.FilteringBoundLogger | None = None,
) -> BaseForecaster:
    """Create a forecaster from a model-kind string and parameter mapping.

    Args:
        model_type: Model kind or alias.
        params: Model parameters.
        random_state: Random seed for reproducibility.
        strict: Empty-series policy (defaults to forecast_strict_inputs).
        logger: Observability hook.

    Returns:
        Instantiated, unfitted forecaster.
    """
    config = build_model_config(model_type, params)
    return model_factory(config, random_state=random_state, strict=strict, logger=logger)
