"""Tests for HTTP status and transport error classification."""

from __future__ import annotations

import httpx
import pytest

from leadflow.domain.errors import (
    AuthenticationFailed,
    PermanentError,
    QuotaExceeded,
    RateLimited,
    TransientError,
)
from leadflow.domain.types import ErrorKind
from leadflow.resilience.http import error_for_status, raise_for_status, send_request


class TestErrorForStatus:
    @pytest.mark.parametrize(
        ("status", "expected_type", "expected_kind"),
        [
            (401, AuthenticationFailed, ErrorKind.AUTHENTICATION),
            (402, QuotaExceeded, ErrorKind.QUOTA_EXCEEDED),
            (429, RateLimited, ErrorKind.RATE_LIMITED),
            (500, TransientError, ErrorKind.TRANSIENT),
            (502, TransientError, ErrorKind.TRANSIENT),
            (503, TransientError, ErrorKind.TRANSIENT),
            (504, TransientError, ErrorKind.TRANSIENT),
            (400, PermanentError, ErrorKind.PERMANENT),
            (403, PermanentError, ErrorKind.PERMANENT),
            (404, PermanentError, ErrorKind.PERMANENT),
            (501, PermanentError, ErrorKind.PERMANENT),
        ],
    )
    def test_status_mapping(self, status, expected_type, expected_kind) -> None:
        error = error_for_status(status, "detail", api_name="svc")

        assert isinstance(error, expected_type)
        assert error.kind == expected_kind
        assert error.status_code == status
        assert error.api_name == "svc"

    @pytest.mark.parametrize("status", [200, 201, 204, 302])
    def test_success_statuses_return_none(self, status) -> None:
        assert error_for_status(status, "", api_name="svc") is None

    def test_detail_is_truncated(self) -> None:
        error = error_for_status(400, "x" * 2000, api_name="svc")
        assert len(str(error)) < 600

    def test_raise_for_status(self) -> None:
        response = httpx.Response(429, text="slow down")
        with pytest.raises(RateLimited):
            raise_for_status(response, api_name="svc")


class TestSendRequest:
    @pytest.mark.anyio()
    async def test_returns_successful_response(self) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        )

        response = await send_request(client, "GET", "https://api.example.com/x", api_name="svc")

        assert response.json() == {"ok": True}

    @pytest.mark.anyio()
    async def test_error_status_raises_tagged_error(self) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
        )

        with pytest.raises(TransientError) as exc_info:
            await send_request(client, "GET", "https://api.example.com/x", api_name="svc")

        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize(
        "exception",
        [httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError],
    )
    @pytest.mark.anyio()
    async def test_transport_failures_are_transient(self, exception) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise exception("boom", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(fail))

        with pytest.raises(TransientError) as exc_info:
            await send_request(client, "POST", "https://api.example.com/x", api_name="svc")

        assert exc_info.value.status_code is None
