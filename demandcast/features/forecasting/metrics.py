"""Accuracy scoring shared by every forecaster.

Supported Metrics:
- MAE: Mean Absolute Error
- MSE / RMSE: Mean Squared Error and its root
- MAPE: Mean Absolute Percentage Error (0-100 scale)
- R2: Coefficient of determination
- Accuracy percentage: max(0, 100 - MAPE)

CRITICAL: All forecasters' validate() delegate to MetricsCalculator.score so
accuracy is comparable across models.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from demandcast.features.forecasting.schemas import AccuracyMetrics

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]


class MetricsCalculator:
    """Calculate forecasting accuracy metrics over the overlap of two sequences.

    Only the first n = min(len(actual), len(predicted)) elements are compared.
    Empty overlap yields all-zero metrics rather than nan.
    """

    @staticmethod
    def _overlap(
        actual: Sequence[float] | FloatArray,
        predicted: Sequence[float] | FloatArray,
    ) -> tuple[FloatArray, FloatArray]:
        actuals = np.asarray(actual, dtype=np.float64)
        predictions = np.asarray(predicted, dtype=np.float64)
        n = min(len(actuals), len(predictions))
        return actuals[:n], predictions[:n]

    @staticmethod
    def mae(actuals: FloatArray, predictions: FloatArray) -> float:
        """Mean Absolute Error.

        Formula: mean(|actual - predicted|)
        """
        if len(actuals) == 0:
            return 0.0
        return float(np.mean(np.abs(actuals - predictions)))

    @staticmethod
    def mse(actuals: FloatArray, predictions: FloatArray) -> float:
        """Mean Squared Error.

        Formula: mean((actual - predicted)^2)
        """
        if len(actuals) == 0:
            return 0.0
        return float(np.mean((actuals - predictions) ** 2))

    @staticmethod
    def mape(actuals: FloatArray, predictions: FloatArray) -> float:
        """Mean Absolute Percentage Error.

        Formula: 100/n * sum(|A - F| / |A|) over A != 0

        CRITICAL: Divides by the full n, not the count of nonzero actuals.
        Zero actuals contribute 0 to the sum, which understates error on
        intermittent series.
        """
        n = len(actuals)
        if n == 0:
            return 0.0
        nonzero = actuals != 0
        pct_errors = np.abs((actuals[nonzero] - predictions[nonzero]) / actuals[nonzero])
        return float(100.0 * np.sum(pct_errors) / n)

    @staticmethod
    def r2(actuals: FloatArray, predictions: FloatArray) -> float:
        """Coefficient of determination.

        Formula: 1 - SS_res / SS_tot, 0 when SS_tot == 0 (constant actuals).
        """
        if len(actuals) == 0:
            return 0.0
        ss_tot = float(np.sum((actuals - np.mean(actuals)) ** 2))
        if ss_tot == 0:
            return 0.0
        ss_res = float(np.sum((actuals - predictions) ** 2))
        return 1.0 - ss_res / ss_tot

    def score(
        self,
        actual: Sequence[float] | FloatArray,
        predicted: Sequence[float] | FloatArray,
    ) -> AccuracyMetrics:
        """Calculate all metrics for actual vs predicted.

        Args:
            actual: Ground truth values.
            predicted: Predicted values.

        Returns:
            AccuracyMetrics; all zeros when the overlap is empty.
        """
        actuals, predictions = self._overlap(actual, predicted)
        if len(actuals) == 0:
            return AccuracyMetrics()

        mse_value = self.mse(actuals, predictions)
        mape_value = self.mape(actuals, predictions)
        return AccuracyMetrics(
            mae=self.mae(actuals, predictions),
            mse=mse_value,
            rmse=float(np.sqrt(mse_value)),
            mape=mape_value,
            r2=self.r2(actuals, predictions),
            accuracy_percentage=max(0.0, 100.0 - mape_value),
        )


def score(
    actual: Sequence[float] | FloatArray,
    predicted: Sequence[float] | FloatArray,
) -> AccuracyMetrics:
    """Score predictions against actuals with the shared formula set."""
    return MetricsCalculator().score(actual, predicted)
