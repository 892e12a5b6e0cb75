"""Tests for NotificationDispatcher retry and failure reporting."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY

from leadflow.domain.errors import (
    AuthenticationFailed,
    NotificationDeliveryFailed,
    PermanentError,
    TransientError,
)
from leadflow.email.dispatcher import NotificationDispatcher
from leadflow.email.models import DispatchRequest, OutboundEmail

REQUEST = DispatchRequest(
    recipient="team@example.com",
    subject="New lead",
    html="<p>Hi</p>",
    reply_to="lead@acme.com",
)


def _resend(*effects) -> MagicMock:
    client = MagicMock()
    client.send = AsyncMock(side_effect=list(effects))
    return client


def _notifications(outcome: str) -> float:
    return REGISTRY.get_sample_value("leadflow_notifications_total", {"outcome": outcome}) or 0.0


class TestSend:
    @pytest.mark.anyio()
    async def test_success_returns_message_id(self, sleep) -> None:
        client = _resend("msg_1")
        dispatcher = NotificationDispatcher(client, default_sender="Site <a@example.com>", sleep=sleep)
        before = _notifications("sent")

        result = await dispatcher.send(REQUEST)

        assert result.message_id == "msg_1"
        assert result.attempts == 1
        assert not result.retried
        outbound: OutboundEmail = client.send.await_args.args[0]
        assert outbound.sender == "Site <a@example.com>"
        assert outbound.to == "team@example.com"
        assert outbound.reply_to == "lead@acme.com"
        assert _notifications("sent") - before == 1

    @pytest.mark.anyio()
    async def test_request_sender_overrides_default(self, sleep) -> None:
        client = _resend("msg_1")
        dispatcher = NotificationDispatcher(client, default_sender="a@example.com", sleep=sleep)

        await dispatcher.send(REQUEST.model_copy(update={"sender": "leads@example.com"}))

        assert client.send.await_args.args[0].sender == "leads@example.com"

    @pytest.mark.anyio()
    async def test_transient_failures_retried(self, sleep) -> None:
        client = _resend(TransientError("503"), TransientError("timeout"), "msg_3")
        dispatcher = NotificationDispatcher(client, default_sender="a@example.com", sleep=sleep)

        result = await dispatcher.send(REQUEST)

        assert result.message_id == "msg_3"
        assert result.attempts == 3
        assert result.retried
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.anyio()
    async def test_exhausted_retries_raise_delivery_failed(self, sleep) -> None:
        client = _resend(*[TransientError("503")] * 4)
        dispatcher = NotificationDispatcher(client, default_sender="a@example.com", sleep=sleep)
        before = _notifications("failed")

        with pytest.raises(NotificationDeliveryFailed) as exc_info:
            await dispatcher.send(REQUEST)

        assert exc_info.value.attempts == 4
        assert exc_info.value.recipient == "team@example.com"
        assert isinstance(exc_info.value.cause, TransientError)
        assert sleep.delays == [1.0, 2.0, 4.0]
        assert _notifications("failed") - before == 1

    @pytest.mark.parametrize("error", [AuthenticationFailed("401"), PermanentError("422")])
    @pytest.mark.anyio()
    async def test_non_retryable_failure_makes_one_attempt(self, error, sleep) -> None:
        client = _resend(error)
        dispatcher = NotificationDispatcher(client, default_sender="a@example.com", sleep=sleep)

        with pytest.raises(NotificationDeliveryFailed) as exc_info:
            await dispatcher.send(REQUEST)

        assert exc_info.value.attempts == 1
        assert exc_info.value.cause is error
        assert sleep.delays == []
