"""Tests for accuracy scoring."""

import math

import numpy as np
import pytest

from demandcast.features.forecasting.metrics import MetricsCalculator, score
from demandcast.features.forecasting.schemas import AccuracyMetrics


class TestScore:
    """Tests for MetricsCalculator.score."""

    def test_perfect_prediction(self):
        """actual == predicted gives zero errors, r2 = 1 and 100% accuracy."""
        actual = [10.0, 12.0, 15.0, 11.0]

        metrics = score(actual, list(actual))

        assert metrics.mae == 0.0
        assert metrics.mse == 0.0
        assert metrics.rmse == 0.0
        assert metrics.mape == 0.0
        assert metrics.r2 == 1.0
        assert metrics.accuracy_percentage == 100.0

    def test_perfect_prediction_constant_actuals(self):
        """Constant actuals have SS_tot == 0, so r2 falls back to 0."""
        metrics = score([5.0, 5.0, 5.0], [5.0, 5.0, 5.0])

        assert metrics.r2 == 0.0
        assert metrics.accuracy_percentage == 100.0

    @pytest.mark.parametrize(
        ("actual", "predicted"),
        [([], []), ([1.0, 2.0], []), ([], [1.0])],
    )
    def test_empty_overlap_returns_zero_metrics(self, actual, predicted):
        """Zero-length overlap returns all-zero metrics without raising."""
        assert score(actual, predicted) == AccuracyMetrics()

    def test_known_values(self):
        """Hand-computed metrics for a small example."""
        metrics = score([100.0, 200.0], [110.0, 180.0])

        assert metrics.mae == pytest.approx(15.0)
        assert metrics.mse == pytest.approx(250.0)
        assert metrics.rmse == pytest.approx(math.sqrt(250.0))
        # (10/100 + 20/200) / 2 * 100
        assert metrics.mape == pytest.approx(10.0)
        assert metrics.accuracy_percentage == pytest.approx(90.0)
        # SS_tot = 5000, SS_res = 500
        assert metrics.r2 == pytest.approx(0.9)

    def test_only_overlap_is_compared(self):
        """Extra predictions beyond len(actual) are ignored."""
        metrics = score([10.0, 20.0], [10.0, 20.0, 999.0])

        assert metrics.mae == 0.0

    def test_mape_divides_by_full_n(self):
        """Zero actuals contribute nothing but still count in the denominator."""
        metrics = score([0.0, 100.0], [5.0, 150.0])

        # only |150-100|/100 = 0.5 counted, divided by n = 2
        assert metrics.mape == pytest.approx(25.0)

    def test_accuracy_percentage_floored_at_zero(self):
        """MAPE above 100 gives 0% accuracy, never negative."""
        metrics = score([1.0, 2.0], [10.0, 20.0])

        assert metrics.mape > 100.0
        assert metrics.accuracy_percentage == 0.0

    def test_accepts_numpy_arrays(self):
        """Numpy inputs are scored the same as lists."""
        metrics = MetricsCalculator().score(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0, 4.0]))

        assert metrics.mae == pytest.approx(1 / 3)
