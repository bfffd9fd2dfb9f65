"""Health check endpoint."""

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from demandcast.core.config import get_settings
from demandcast.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded"]
    llm_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    The service is always usable without an OpenAI key; only the
    ``time_llm`` model degrades to its fallback forecast.

    Returns:
        Health status response.
    """
    logger.debug("health.check_started")
    settings = get_settings()
    return HealthResponse(status="ok", llm_configured=bool(settings.openai_api_key))
