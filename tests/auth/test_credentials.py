"""Tests for service-account credentials: assertion signing, exchange, caching.

The token endpoint is faked with ``httpx.MockTransport``; assertions are
signed with a throwaway RSA key generated for the session.
"""

from __future__ import annotations

import base64
import json
from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from google.auth import jwt

from leadflow.auth.credentials import (
    CLOUD_PLATFORM_SCOPE,
    JWT_BEARER_GRANT_TYPE,
    CredentialManager,
    ServiceAccountKey,
)
from leadflow.domain.errors import CredentialExchangeFailed
from leadflow.domain.types import ErrorKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TokenEndpoint:
    """Fake token endpoint that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def _token(value: str = "ya29.token", expires_in: int = 3600) -> httpx.Response:
    return httpx.Response(200, json={"access_token": value, "expires_in": expires_in, "token_type": "Bearer"})


def _manager(key: ServiceAccountKey, endpoint: TokenEndpoint, clock) -> CredentialManager:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    return CredentialManager(key, http_client, clock=clock)


# ---------------------------------------------------------------------------
# ServiceAccountKey
# ---------------------------------------------------------------------------


class TestServiceAccountKey:
    """Loading the signing identity."""

    def test_from_json_reads_identity_fields(self, service_account_json: str) -> None:
        key = ServiceAccountKey.from_json(service_account_json)

        assert key.client_email == "research@test-project.iam.gserviceaccount.com"
        assert key.private_key_id == "key-123"
        assert key.token_uri == "https://oauth2.googleapis.com/token"

    def test_escaped_newlines_in_private_key_are_restored(self, rsa_private_key_pem: str) -> None:
        """Keys pasted into env vars often carry literal backslash-n sequences."""
        escaped = rsa_private_key_pem.replace("\n", "\\n")
        raw = json.dumps({"client_email": "a@b.iam.gserviceaccount.com", "private_key": escaped})

        key = ServiceAccountKey.from_json(raw)

        assert key.private_key.get_secret_value() == rsa_private_key_pem

    def test_from_file(self, service_account_json: str, tmp_path: Path) -> None:
        path = tmp_path / "sa.json"
        path.write_text(service_account_json)

        key = ServiceAccountKey.from_file(path)

        assert key.client_email.startswith("research@")

    def test_private_key_is_not_in_repr(self, service_account_key: ServiceAccountKey) -> None:
        assert "BEGIN PRIVATE KEY" not in repr(service_account_key)


# ---------------------------------------------------------------------------
# Assertion signing
# ---------------------------------------------------------------------------


class TestBuildAssertion:
    """The signed JWT presented to the token endpoint."""

    def test_claims(self, service_account_key, clock) -> None:
        manager = _manager(service_account_key, TokenEndpoint(_token()), clock)

        assertion = manager.build_assertion(clock())
        claims = jwt.decode(assertion, verify=False)

        issued_at = int(clock().timestamp())
        assert claims["iss"] == service_account_key.client_email
        assert claims["scope"] == CLOUD_PLATFORM_SCOPE
        assert claims["aud"] == service_account_key.token_uri
        assert claims["iat"] == issued_at
        assert claims["exp"] == issued_at + 3600

    def test_signed_with_rs256_by_the_account_key(
        self, service_account_key, rsa_private_key_pem: str, clock
    ) -> None:
        manager = _manager(service_account_key, TokenEndpoint(_token()), clock)

        assertion = manager.build_assertion(clock())
        header_b64, payload_b64, signature_b64 = assertion.split(".")
        header = json.loads(base64.urlsafe_b64decode(header_b64 + "=" * (-len(header_b64) % 4)))
        signature = base64.urlsafe_b64decode(signature_b64 + "=" * (-len(signature_b64) % 4))

        assert header["alg"] == "RS256"
        public_key = serialization.load_pem_private_key(
            rsa_private_key_pem.encode(), password=None
        ).public_key()
        # Raises InvalidSignature on mismatch.
        public_key.verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )


# ---------------------------------------------------------------------------
# get_credential
# ---------------------------------------------------------------------------


class TestGetCredential:
    """Exchange, caching, and refresh-margin behaviour."""

    @pytest.mark.anyio()
    async def test_exchanges_assertion_for_token(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(_token("ya29.first"))
        manager = _manager(service_account_key, endpoint, clock)

        credential = await manager.get_credential()

        assert credential.token.get_secret_value() == "ya29.first"
        assert credential.expires_at == clock() + timedelta(seconds=3600)
        assert len(endpoint.requests) == 1
        form = parse_qs(endpoint.requests[0].content.decode())
        assert form["grant_type"] == [JWT_BEARER_GRANT_TYPE]
        assert form["assertion"][0].count(".") == 2

    @pytest.mark.anyio()
    async def test_cached_credential_reused_without_network(self, service_account_key, clock) -> None:
        """Inside the refresh margin window, repeated calls make no requests."""
        endpoint = TokenEndpoint(_token())
        manager = _manager(service_account_key, endpoint, clock)

        first = await manager.get_credential()
        clock.advance(timedelta(minutes=49))
        second = await manager.get_credential()

        assert second is first
        assert len(endpoint.requests) == 1

    @pytest.mark.anyio()
    async def test_refreshes_when_inside_margin(self, service_account_key, clock) -> None:
        """With 10 minutes or less remaining, a new token is minted."""
        endpoint = TokenEndpoint(_token("ya29.first"), _token("ya29.second"))
        manager = _manager(service_account_key, endpoint, clock)

        await manager.get_credential()
        clock.advance(timedelta(minutes=50))
        refreshed = await manager.get_credential()

        assert refreshed.token.get_secret_value() == "ya29.second"
        assert manager.cached is refreshed
        assert len(endpoint.requests) == 2

    @pytest.mark.anyio()
    async def test_force_refresh_bypasses_cache(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(_token("ya29.first"), _token("ya29.second"))
        manager = _manager(service_account_key, endpoint, clock)

        await manager.get_credential()
        refreshed = await manager.get_credential(force_refresh=True)

        assert refreshed.token.get_secret_value() == "ya29.second"
        assert len(endpoint.requests) == 2

    @pytest.mark.anyio()
    async def test_invalidate_clears_slot(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(_token("ya29.first"), _token("ya29.second"))
        manager = _manager(service_account_key, endpoint, clock)

        await manager.get_credential()
        manager.invalidate()

        assert manager.cached is None
        refreshed = await manager.get_credential()
        assert refreshed.token.get_secret_value() == "ya29.second"

    @pytest.mark.anyio()
    async def test_short_lived_token_honours_issuer_expiry(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(_token(expires_in=900))
        manager = _manager(service_account_key, endpoint, clock)

        credential = await manager.get_credential()

        assert credential.expires_at == clock() + timedelta(seconds=900)


# ---------------------------------------------------------------------------
# Exchange failures
# ---------------------------------------------------------------------------


class TestExchangeFailures:
    """Failures surface as CredentialExchangeFailed and leave the slot empty."""

    @pytest.mark.anyio()
    async def test_rejected_assertion_is_permanent(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(httpx.Response(401, json={"error": "invalid_grant"}))
        manager = _manager(service_account_key, endpoint, clock)

        with pytest.raises(CredentialExchangeFailed) as exc_info:
            await manager.get_credential()

        assert exc_info.value.kind == ErrorKind.PERMANENT
        assert exc_info.value.status_code == 401
        assert manager.cached is None

    @pytest.mark.anyio()
    async def test_server_error_is_transient(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(httpx.Response(503, text="unavailable"))
        manager = _manager(service_account_key, endpoint, clock)

        with pytest.raises(CredentialExchangeFailed) as exc_info:
            await manager.get_credential()

        assert exc_info.value.kind == ErrorKind.TRANSIENT

    @pytest.mark.anyio()
    async def test_unreachable_endpoint_is_transient(self, service_account_key, clock) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        manager = CredentialManager(service_account_key, http_client, clock=clock)

        with pytest.raises(CredentialExchangeFailed) as exc_info:
            await manager.get_credential()

        assert exc_info.value.kind == ErrorKind.TRANSIENT

    @pytest.mark.anyio()
    async def test_missing_access_token_is_malformed(self, service_account_key, clock) -> None:
        endpoint = TokenEndpoint(httpx.Response(200, json={"token_type": "Bearer"}))
        manager = _manager(service_account_key, endpoint, clock)

        with pytest.raises(CredentialExchangeFailed) as exc_info:
            await manager.get_credential()

        assert exc_info.value.kind == ErrorKind.MALFORMED_RESPONSE
