"""Data API routes for the inventory CSV preview."""

from fastapi import APIRouter, Query
from starlette.concurrency import run_in_threadpool

from demandcast.core.config import get_settings
from demandcast.core.logging import get_logger
from demandcast.features.data.loader import DEFAULT_PREVIEW_ROWS, preview
from demandcast.features.forecasting.schemas import DataPreviewResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


@router.get(
    "/preview",
    response_model=DataPreviewResponse,
    summary="Preview the inventory CSV",
    description="""
Return the CSV header, the first rows and the total row count.

`rows` is capped at `DATA_PREVIEW_MAX_ROWS`.
""",
)
async def preview_data(
    rows: int = Query(default=DEFAULT_PREVIEW_ROWS, ge=1, description="Rows to return"),
) -> DataPreviewResponse:
    """Preview the configured CSV file.

    Args:
        rows: Number of rows requested.

    Returns:
        Headers, first rows and total row count.

    Raises:
        NotFoundError: If the CSV file does not exist.
    """
    settings = get_settings()
    n_rows = min(rows, settings.data_preview_max_rows)
    response = await run_in_threadpool(preview, settings.forecast_data_path, n_rows)
    logger.info(
        "data.preview_completed",
        rows=len(response.rows),
        total_rows=response.total_rows,
    )
    return response
