"""Simplified AR/MA coefficient estimation.

CRITICAL: These are intentionally not Yule-Walker or maximum likelihood.
The AR estimator is a per-lag autocorrelation ratio and the MA estimator is a
constant stub. Forecast baselines depend on both, so keep the formulas as-is.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

# Coefficient used when data is too short or a denominator degenerates
FALLBACK_COEFFICIENT = 0.1


def estimate_ar(
    series: Sequence[float] | np.ndarray[Any, np.dtype[np.floating[Any]]], order: int
) -> list[float]:
    """Estimate autoregressive coefficients.

    Formula: coef[i] = sum_t x[t] * x[t-i-1] / sum_t x[t-i-1]^2, t in [order, n)

    Args:
        series: (Possibly differenced) series in time order.
        order: Number of AR lags (p).

    Returns:
        List of exactly ``order`` coefficients. Falls back to 0.1 for every
        lag when len(series) < order + 1, and per lag when the denominator
        is not positive.
    """
    values = np.asarray(series, dtype=np.float64)
    if len(values) < order + 1:
        return [FALLBACK_COEFFICIENT] * order

    n = len(values)
    current = values[order:n]
    params: list[float] = []
    for i in range(order):
        lagged = values[order - i - 1 : n - i - 1]
        numerator = float(np.sum(current * lagged))
        denominator = float(np.sum(lagged * lagged))
        params.append(numerator / denominator if denominator > 0 else FALLBACK_COEFFICIENT)
    return params


def estimate_ma(
    series: Sequence[float] | np.ndarray[Any, np.dtype[np.floating[Any]]],  # noqa: ARG001
    order: int,
) -> list[float]:
    """Return moving-average coefficients (constant stub).

    Args:
        series: Ignored.
        order: Number of MA lags (q).

    Returns:
        ``[0.1] * order``.
    """
    return [FALLBACK_COEFFICIENT] * order
