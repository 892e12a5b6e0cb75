"""Generative model integration: Vertex AI client, request models, and prompts."""

from leadflow.llm.client import (
    BLOCKED_FINISH_REASONS,
    VertexClient,
    VertexConfig,
    build_request_body,
    extract_content,
)
from leadflow.llm.models import ChatMessage, GenerationRequest, GenerationResult, MessageRole
from leadflow.llm.prompts import (
    CHAT_FALLBACK_MESSAGE,
    CHAT_SYSTEM_PROMPT,
    COMPANY_RESEARCH_PROMPT,
    TRYIT_SYSTEM_PROMPT,
)

__all__ = [
    "BLOCKED_FINISH_REASONS",
    "CHAT_FALLBACK_MESSAGE",
    "CHAT_SYSTEM_PROMPT",
    "COMPANY_RESEARCH_PROMPT",
    "ChatMessage",
    "GenerationRequest",
    "GenerationResult",
    "MessageRole",
    "TRYIT_SYSTEM_PROMPT",
    "VertexClient",
    "VertexConfig",
    "build_request_body",
    "extract_content",
]
