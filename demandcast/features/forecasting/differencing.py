"""Lag-1 and seasonal differencing of numeric series.

Each pass shortens the series: by 1 for ordinary differencing and by
``period`` for seasonal differencing. Series that are too short degrade to an
empty array instead of raising; downstream estimators handle the empty case.

Forecasts are never integrated back through these differences. Models
re-base predicted differences on the last observed value instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]


def difference(series: Sequence[float] | FloatArray, order: int) -> FloatArray:
    """Apply lag-1 differencing ``order`` times.

    Formula (one pass): out[i] = x[i+1] - x[i]

    Args:
        series: Input values in time order.
        order: Number of differencing passes (0 returns a copy).

    Returns:
        Array of length max(0, len(series) - order).

    Raises:
        ValueError: If order is negative.
    """
    if order < 0:
        raise ValueError(f"order must be >= 0, got {order}")
    result = np.asarray(series, dtype=np.float64).copy()
    for _ in range(order):
        if len(result) <= 1:
            return np.array([], dtype=np.float64)
        result = result[1:] - result[:-1]
    return result


def seasonal_difference(
    series: Sequence[float] | FloatArray, order: int, period: int
) -> FloatArray:
    """Apply lag-``period`` differencing ``order`` times.

    Formula (one pass): out[i] = x[i+period] - x[i]

    Args:
        series: Input values in time order.
        order: Number of seasonal differencing passes.
        period: Seasonal lag (e.g. 7 for weekly data).

    Returns:
        Array of length max(0, len(series) - order * period).

    Raises:
        ValueError: If order is negative or period < 1.
    """
    if order < 0:
        raise ValueError(f"order must be >= 0, got {order}")
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    result = np.asarray(series, dtype=np.float64).copy()
    for _ in range(order):
        if len(result) <= period:
            return np.array([], dtype=np.float64)
        result = result[period:] - result[:-period]
    return result
