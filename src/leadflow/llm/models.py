"""Pydantic models for the generative model request/response contract.

Only the fields this service sends and reads are modelled; the provider's
full wire format is out of scope.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(StrEnum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of the conversation sent to the model."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole = MessageRole.USER
    content: str


class GenerationRequest(BaseModel):
    """A single content-generation call."""

    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage]
    system_instruction: str | None = None
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=2048, gt=0)
    response_mime_type: str | None = Field(
        default=None,
        description="Set to 'application/json' to request structured output",
    )
    google_search: bool = Field(
        default=False,
        description="Ground the answer with Google Search results",
    )
    use_rag: bool = Field(
        default=False,
        description="Retrieve context from the configured RAG corpus, if any",
    )
    similarity_top_k: int = Field(default=8, gt=0)
    vector_distance_threshold: float = Field(default=0.4, ge=0.0)


class GenerationResult(BaseModel):
    """Text returned by the model plus call bookkeeping."""

    model_config = ConfigDict(frozen=True)

    content: str
    finish_reason: str | None = None
    grounded: bool = False
    attempts: int = 1

    @property
    def retried(self) -> bool:
        return self.attempts > 1
