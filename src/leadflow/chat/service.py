"""Website chat backed by the Vertex AI client.

The chat never fails the page: when the model is unavailable or the call
ends in a terminal ``ServiceError``, the visitor gets a fixed reply that
points at the booking links instead.
"""

from __future__ import annotations

import structlog

from leadflow.chat.models import ChatMetadata, ChatReply, ChatRequest, ChatRole
from leadflow.domain.errors import ServiceError
from leadflow.llm.client import VertexClient
from leadflow.llm.models import ChatMessage, GenerationRequest, MessageRole
from leadflow.llm.prompts import CHAT_FALLBACK_MESSAGE, CHAT_SYSTEM_PROMPT, TRYIT_SYSTEM_PROMPT
from leadflow.observability.metrics import CHAT_REPLIES

logger = structlog.get_logger()

CHAT_TEMPERATURE = 0.8
CHAT_MAX_OUTPUT_TOKENS = 2048
TRYIT_MAX_OUTPUT_TOKENS = 1024
DEFAULT_MODEL = "gemini-2.5-flash"


def build_chat_request(request: ChatRequest) -> GenerationRequest:
    """Map the browser conversation onto a RAG-grounded generation request.

    System turns from the browser are dropped; the server picks the system
    prompt from the widget mode.
    """
    tryit = request.widget_mode == "tryit"
    return GenerationRequest(
        messages=[
            ChatMessage(
                role=MessageRole.ASSISTANT if turn.role == ChatRole.ASSISTANT else MessageRole.USER,
                content=turn.content,
            )
            for turn in request.messages
            if turn.role != ChatRole.SYSTEM
        ],
        system_instruction=TRYIT_SYSTEM_PROMPT if tryit else CHAT_SYSTEM_PROMPT,
        temperature=CHAT_TEMPERATURE,
        max_output_tokens=TRYIT_MAX_OUTPUT_TOKENS if tryit else CHAT_MAX_OUTPUT_TOKENS,
        use_rag=True,
    )


class ChatService:
    """Answer chat messages, falling back to a canned reply on failure.

    Args:
        client: Vertex AI client, or ``None`` when research credentials are
            not configured (every reply is then the fallback).
    """

    def __init__(self, client: VertexClient | None) -> None:
        self._client = client

    @property
    def model(self) -> str:
        return self._client.config.model if self._client is not None else DEFAULT_MODEL

    async def reply(self, request: ChatRequest) -> ChatReply:
        log = logger.bind(widget_mode=request.widget_mode, message_count=len(request.messages))
        if self._client is None:
            log.warning("Chat model not configured, sending fallback reply")
            return self._fallback()

        generation = build_chat_request(request)
        if not generation.messages:
            log.warning("Chat request had no user or assistant turns, sending fallback reply")
            return self._fallback()

        try:
            result = await self._client.generate(generation)
        except ServiceError as exc:
            log.error(
                "Chat model call failed, sending fallback reply",
                error_kind=exc.kind.value,
                status_code=exc.status_code,
                exception=str(exc),
            )
            return self._fallback()

        CHAT_REPLIES.labels(outcome="generated").inc()
        log.info(
            "Chat reply generated",
            attempts=result.attempts,
            grounded=result.grounded,
            content_length=len(result.content),
        )
        return ChatReply(
            message=result.content,
            metadata=ChatMetadata(model=self.model, retried=result.retried),
        )

    def _fallback(self) -> ChatReply:
        CHAT_REPLIES.labels(outcome="fallback").inc()
        return ChatReply(
            message=CHAT_FALLBACK_MESSAGE,
            metadata=ChatMetadata(model=self.model, fallback=True),
        )
