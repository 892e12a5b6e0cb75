"""Request and response models for the website chat endpoint."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatTurn(BaseModel):
    """One message of the visitor's conversation as the browser holds it."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str = Field(min_length=1, max_length=10000)


class ChatRequest(BaseModel):
    """Conversation so far, oldest turn first.

    ``widget_mode="tryit"`` selects the short decision-coaching prompt used by
    the Try It widget.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[ChatTurn] = Field(min_length=1, max_length=50)
    widget_mode: Literal["tryit"] | None = None


class ChatMetadata(BaseModel):
    model: str
    cached: bool = False
    fallback: bool = False
    retried: bool = False


class ChatReply(BaseModel):
    """Response body for the chat endpoint.  Always well formed, even on failure."""

    message: str
    metadata: ChatMetadata
