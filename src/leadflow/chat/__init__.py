"""Website chat: conversation models, the model-backed reply service, and its route."""

from leadflow.chat.models import ChatMetadata, ChatReply, ChatRequest, ChatRole, ChatTurn
from leadflow.chat.service import ChatService, build_chat_request

__all__ = [
    "ChatMetadata",
    "ChatReply",
    "ChatRequest",
    "ChatRole",
    "ChatService",
    "ChatTurn",
    "build_chat_request",
]
