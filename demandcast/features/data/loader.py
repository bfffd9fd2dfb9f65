"""CSV loading for the retail inventory dataset.

Turns rows of the inventory CSV into TrainingSeries for the forecasting
workflow and serves the dashboard's preview table.

CRITICAL: Rows keep file order. The series is never re-sorted by date.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from demandcast.core.exceptions import NotFoundError, ValidationError
from demandcast.core.logging import get_logger
from demandcast.features.forecasting.schemas import DataPreviewResponse, TrainingSeries

logger = get_logger(__name__)

DEFAULT_PREVIEW_ROWS = 20

FilterValue = str | int | float


def read_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV file with stripped column names.

    Raises:
        NotFoundError: If the file does not exist.
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise NotFoundError(
            message=f"CSV file not found: {csv_path}",
            details={"path": str(csv_path)},
        )
    df = pd.read_csv(csv_path)
    df.columns = [str(column).strip() for column in df.columns]
    return df


def _require_columns(df: pd.DataFrame, columns: list[str]) -> None:
    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise ValidationError(
            message=f"Unknown column(s): {', '.join(missing)}",
            details={"missing": missing, "available": list(df.columns)},
        )


def _apply_filters(df: pd.DataFrame, filters: Mapping[str, FilterValue] | None) -> pd.DataFrame:
    if not filters:
        return df
    mask = pd.Series(True, index=df.index)
    for column, value in filters.items():
        # Compare as strings so "S001" and 1 match CSV cells regardless of dtype
        mask &= df[column].astype(str).str.strip() == str(value)
    return df[mask]


def _to_series(
    df: pd.DataFrame, target_column: str, date_column: str | None
) -> TrainingSeries | None:
    values = pd.to_numeric(df[target_column], errors="coerce")
    keep = values.notna()
    if not keep.any():
        return None
    dates = None
    if date_column is not None:
        dates = [str(d).strip() for d in df.loc[keep, date_column]]
    return TrainingSeries(values=values[keep].astype(float).tolist(), dates=dates)


def load_series(
    path: str | Path,
    target_column: str,
    date_column: str | None = "Date",
    filters: Mapping[str, FilterValue] | None = None,
) -> TrainingSeries:
    """Extract one numeric series from the CSV.

    Args:
        path: CSV file path.
        target_column: Column to forecast (e.g. "Units Sold").
        date_column: Column with date labels, or None.
        filters: Equality filters, e.g. {"Store ID": "S001"}.

    Returns:
        TrainingSeries in file order with non-numeric cells dropped.

    Raises:
        NotFoundError: If the file does not exist.
        ValidationError: If a column is unknown or no numeric rows remain.
    """
    df = read_csv(path)
    required = [target_column, *(filters or {})]
    if date_column is not None:
        required.append(date_column)
    _require_columns(df, required)

    series = _to_series(_apply_filters(df, filters), target_column, date_column)
    if series is None:
        raise ValidationError(
            message=f"No numeric values found in column '{target_column}'",
            details={"target_column": target_column, "filters": dict(filters or {})},
        )

    logger.info(
        "data.series_loaded",
        path=str(path),
        target_column=target_column,
        n_observations=len(series.values),
        filters=dict(filters or {}),
    )
    return series


def load_grouped_series(
    path: str | Path,
    target_column: str,
    group_by: str | list[str],
    date_column: str | None = "Date",
    filters: Mapping[str, FilterValue] | None = None,
) -> dict[str, TrainingSeries]:
    """Extract one series per group (e.g. per store).

    Args:
        path: CSV file path.
        target_column: Column to forecast.
        group_by: Column or columns identifying a group.
        date_column: Column with date labels, or None.
        filters: Equality filters applied before grouping.

    Returns:
        Group key -> TrainingSeries in first-appearance order. Multi-column
        keys are joined with "/". Groups without numeric values are skipped.

    Raises:
        NotFoundError: If the file does not exist.
        ValidationError: If a column is unknown or every group is empty.
    """
    group_columns = [group_by] if isinstance(group_by, str) else list(group_by)
    df = read_csv(path)
    required = [target_column, *group_columns, *(filters or {})]
    if date_column is not None:
        required.append(date_column)
    _require_columns(df, required)

    groups: dict[str, TrainingSeries] = {}
    filtered = _apply_filters(df, filters)
    for key, group_df in filtered.groupby(group_columns, sort=False):
        parts = key if isinstance(key, tuple) else (key,)
        series = _to_series(group_df, target_column, date_column)
        if series is not None:
            groups["/".join(str(part) for part in parts)] = series

    if not groups:
        raise ValidationError(
            message=f"No numeric values found in column '{target_column}'",
            details={"target_column": target_column, "group_by": group_columns},
        )

    logger.info(
        "data.grouped_series_loaded",
        path=str(path),
        target_column=target_column,
        group_by=group_columns,
        n_groups=len(groups),
    )
    return groups


def preview(path: str | Path, n_rows: int = DEFAULT_PREVIEW_ROWS) -> DataPreviewResponse:
    """Headers, first rows and total row count of the CSV.

    Args:
        path: CSV file path.
        n_rows: Number of rows to return.

    Returns:
        DataPreviewResponse with JSON-safe cell values (missing cells -> None).

    Raises:
        NotFoundError: If the file does not exist.
    """
    df = read_csv(path)
    # to_json maps NaN to null and numpy scalars to plain JSON types
    rows: list[dict[str, Any]] = json.loads(df.head(n_rows).to_json(orient="records"))
    return DataPreviewResponse(headers=list(df.columns), rows=rows, total_rows=len(df))
