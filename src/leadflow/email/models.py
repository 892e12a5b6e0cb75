"""Pydantic v2 models for outbound transactional e-mail.

Provides frozen (immutable) models for a dispatch request, the message
handed to the e-mail provider, and the dispatch result.
"""

from pydantic import BaseModel, ConfigDict


class RenderedMessage(BaseModel):
    """Subject and HTML body produced by a template."""

    model_config = ConfigDict(frozen=True)

    subject: str
    html: str


class DispatchRequest(BaseModel):
    """One business event's notification.

    Delivery is at-least-once: a retry after an ambiguous failure may send
    the same message twice.
    """

    model_config = ConfigDict(frozen=True)

    recipient: str
    subject: str
    html: str
    reply_to: str | None = None
    sender: str | None = None  # falls back to the dispatcher's default sender


class OutboundEmail(BaseModel):
    """The message as sent to the e-mail provider."""

    model_config = ConfigDict(frozen=True)

    sender: str
    to: str
    subject: str
    html: str
    reply_to: str | None = None


class DispatchResult(BaseModel):
    """Outcome of a successful dispatch."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    attempts: int = 1

    @property
    def retried(self) -> bool:
        return self.attempts > 1
