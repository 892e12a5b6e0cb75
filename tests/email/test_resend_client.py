"""Tests for the Resend client using ``httpx.MockTransport``."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import SecretStr

from leadflow.domain.errors import AuthenticationFailed, RateLimited, TransientError
from leadflow.email.client import RESEND_API_URL, ResendClient
from leadflow.email.models import OutboundEmail

OUTBOUND = OutboundEmail(
    sender="Website <noreply@example.com>",
    to="team@example.com",
    subject="New lead",
    html="<p>Hi</p>",
    reply_to="lead@acme.com",
)


def _client(handler) -> ResendClient:
    return ResendClient(
        SecretStr("re_test_key"),
        httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestSend:
    @pytest.mark.anyio()
    async def test_posts_payload_with_bearer_key(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "msg_123"})

        message_id = await _client(handler).send(OUTBOUND)

        assert message_id == "msg_123"
        request = seen[0]
        assert str(request.url) == RESEND_API_URL
        assert request.headers["Authorization"] == "Bearer re_test_key"
        assert json.loads(request.content) == {
            "from": "Website <noreply@example.com>",
            "to": ["team@example.com"],
            "subject": "New lead",
            "html": "<p>Hi</p>",
            "reply_to": "lead@acme.com",
        }

    @pytest.mark.anyio()
    async def test_reply_to_omitted_when_unset(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "msg_1"})

        await _client(handler).send(OUTBOUND.model_copy(update={"reply_to": None}))

        assert "reply_to" not in seen[0]

    @pytest.mark.anyio()
    async def test_missing_id_returns_empty_string(self) -> None:
        message_id = await _client(lambda request: httpx.Response(200, text="ok")).send(OUTBOUND)
        assert message_id == ""

    @pytest.mark.parametrize(
        ("status", "error_type"),
        [(401, AuthenticationFailed), (429, RateLimited), (500, TransientError)],
    )
    @pytest.mark.anyio()
    async def test_error_statuses_are_tagged(self, status, error_type) -> None:
        client = _client(lambda request: httpx.Response(status, json={"message": "nope"}))

        with pytest.raises(error_type) as exc_info:
            await client.send(OUTBOUND)

        assert exc_info.value.api_name == "resend"
