"""Chat module proxying dashboard questions to a chat-completion model.

Exports:
    - ChatService: Sends one user message and returns the reply
    - ChatRequest, ChatResponse, ChatUsage: API schemas
"""

from demandcast.features.chat.schemas import ChatRequest, ChatResponse, ChatUsage
from demandcast.features.chat.service import ChatService

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatService",
    "ChatUsage",
]
