"""Pydantic schemas for the chat endpoint."""

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for POST /chat.

    Attributes:
        message: User message sent as a single user turn.
        model: Chat model name (None = LLM_MODEL setting).
    """

    message: str = Field(..., min_length=1, max_length=20_000)
    model: str | None = Field(default=None, min_length=1)


class ChatUsage(BaseModel):
    """Token usage reported by the model provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Response body for POST /chat.

    Attributes:
        response: Reply text (empty when the model returned no content).
        model: Model that produced the reply, as reported by the provider.
        usage: Token usage, when reported.
    """

    response: str
    model: str
    usage: ChatUsage | None = None
