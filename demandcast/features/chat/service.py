"""Chat service forwarding a single message to the OpenAI chat API.

Unlike the time_llm forecaster, failures here are not absorbed: the caller
asked for the model's answer, so a missing key or upstream error is raised
as ChatError and rendered by the route as a problem detail.
"""

from __future__ import annotations

from typing import Any

import structlog
from openai import APIStatusError, OpenAI, OpenAIError

from demandcast.core.config import get_settings
from demandcast.features.chat.schemas import ChatRequest, ChatResponse, ChatUsage

logger = structlog.get_logger()


class ChatError(Exception):
    """Error getting a reply from the chat model.

    Attributes:
        upstream_status: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ChatNotConfiguredError(ChatError):
    """OPENAI_API_KEY is not set and no client was injected."""

    pass


class ChatService:
    """Proxy between the dashboard chat box and the chat-completion API."""

    def __init__(self, client: Any = None) -> None:  # noqa: ANN401
        """Initialize the chat service.

        Args:
            client: OpenAI-compatible client; created lazily when None.
        """
        self.settings = get_settings()
        self._client = client

    def _get_client(self) -> Any:  # noqa: ANN401
        """Get or create the OpenAI client.

        Raises:
            ChatNotConfiguredError: If the OpenAI API key is not configured.
        """
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ChatNotConfiguredError(
                    "OpenAI API key not configured. Set OPENAI_API_KEY environment variable."
                )
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.llm_timeout_seconds,
            )
        return self._client

    def complete(self, request: ChatRequest) -> ChatResponse:
        """Send the message as one user turn and return the reply.

        Args:
            request: Message and optional model override.

        Returns:
            Reply text, reporting model and token usage.

        Raises:
            ChatNotConfiguredError: If no API key is configured.
            ChatError: If the provider call fails.
        """
        model = request.model or self.settings.llm_model
        client = self._get_client()

        logger.info(
            "chat.completion_started",
            model=model,
            message_length=len(request.message),
        )

        try:
            response = client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": request.message}],
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
            )
        except APIStatusError as e:
            logger.error(
                "chat.completion_failed",
                model=model,
                error=str(e),
                error_type=type(e).__name__,
                upstream_status=e.status_code,
            )
            raise ChatError(f"OpenAI API error: {e.status_code}", e.status_code) from e
        except OpenAIError as e:
            logger.error(
                "chat.completion_failed",
                model=model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ChatError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content or ""
        usage = None
        if response.usage is not None:
            usage = ChatUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        logger.info(
            "chat.completion_completed",
            model=response.model,
            response_length=len(content),
            total_tokens=usage.total_tokens if usage else None,
        )

        return ChatResponse(response=content, model=response.model, usage=usage)
