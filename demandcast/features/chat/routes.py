"""Chat API route."""

from fastapi import APIRouter, Depends, status
from starlette.concurrency import run_in_threadpool

from demandcast.core.exceptions import UpstreamServiceError
from demandcast.core.logging import get_logger
from demandcast.features.chat.schemas import ChatRequest, ChatResponse
from demandcast.features.chat.service import ChatError, ChatNotConfiguredError, ChatService

logger = get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def get_chat_service() -> ChatService:
    """Chat service dependency."""
    return ChatService()


@router.post(
    "",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    summary="Ask the chat model",
    description="""
Forward a single user message to the configured chat model
(`LLM_MODEL`, temperature `LLM_TEMPERATURE`, at most `LLM_MAX_TOKENS`).

**Errors:**
- `503`: `OPENAI_API_KEY` is not configured
- `502`: the provider failed or returned a non-success status
  (`upstream_status` is logged)
""",
)
async def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Send a message to the chat model.

    Args:
        request: Message and optional model override.
        service: Chat service from dependency.

    Returns:
        The model's reply with model name and token usage.

    Raises:
        UpstreamServiceError: If the key is missing or the provider fails.
    """
    try:
        return await run_in_threadpool(service.complete, request)
    except ChatNotConfiguredError as e:
        logger.warning("chat.request_failed", error=str(e), error_type=type(e).__name__)
        raise UpstreamServiceError(
            message=str(e),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        ) from e
    except ChatError as e:
        logger.warning(
            "chat.request_failed",
            error=str(e),
            error_type=type(e).__name__,
            upstream_status=e.upstream_status,
        )
        raise UpstreamServiceError(
            message=str(e),
            details={"upstream_status": e.upstream_status},
        ) from e
