"""Service-account bearer credentials for Google Cloud APIs.

Provides:
- ``ServiceAccountKey``: the long-lived signing identity, loaded from JSON
  text (environment secret) or a key file.
- ``CredentialManager``: signs a JWT assertion with the account's RSA key,
  exchanges it at the token endpoint for a short-lived bearer token, and keeps
  that token in a single in-memory slot until it nears expiry.

One manager per identity is created at startup and injected into every
client that needs it.  Concurrent refreshes are not serialised: each one
produces a valid token and the last write wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import structlog
from google.auth import crypt, jwt
from pydantic import BaseModel, ConfigDict, SecretStr, field_validator

from leadflow.domain.errors import CredentialExchangeFailed
from leadflow.domain.types import ErrorKind
from leadflow.resilience.http import error_for_status

logger = structlog.get_logger()

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME = timedelta(hours=1)
DEFAULT_REFRESH_MARGIN = timedelta(minutes=10)
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
TOKEN_EXCHANGE_TIMEOUT = 30.0


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ServiceAccountKey(BaseModel):
    """The subset of a Google service-account key file needed for signing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    client_email: str
    private_key: SecretStr
    private_key_id: str | None = None
    token_uri: str = GOOGLE_TOKEN_URI

    @field_validator("private_key", mode="before")
    @classmethod
    def _unescape_newlines(cls, value: object) -> object:
        # Keys pasted into environment secrets often carry literal "\n" sequences.
        if isinstance(value, str):
            return value.replace("\\n", "\n")
        return value

    @classmethod
    def from_json(cls, text: str) -> ServiceAccountKey:
        """Parse a key from the JSON text of a service-account key file."""
        return cls.model_validate_json(text)

    @classmethod
    def from_file(cls, path: str | Path) -> ServiceAccountKey:
        """Load a key from a service-account key file on disk."""
        return cls.from_json(Path(path).expanduser().read_text())


class Credential(BaseModel):
    """A bearer token and the instant the issuer says it stops working."""

    model_config = ConfigDict(frozen=True)

    token: SecretStr
    expires_at: datetime

    def remaining(self, now: datetime) -> timedelta:
        return self.expires_at - now


class CredentialManager:
    """Produce and cache a bearer credential derived from a service-account key.

    Args:
        key: The service-account identity used to sign assertions.
        http_client: Client used for the token exchange.
        scopes: OAuth2 scopes requested in the assertion.
        refresh_margin: A cached credential is reused only while more than
            this much lifetime remains.
        clock: Returns the current UTC time.  Tests inject a fixed clock.
    """

    def __init__(
        self,
        key: ServiceAccountKey,
        http_client: httpx.AsyncClient,
        *,
        scopes: Sequence[str] = (CLOUD_PLATFORM_SCOPE,),
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._key = key
        self._http = http_client
        self._scopes = " ".join(scopes)
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._signer = crypt.RSASigner.from_service_account_info(
            {
                "client_email": key.client_email,
                "private_key": key.private_key.get_secret_value(),
                "private_key_id": key.private_key_id,
            }
        )
        self._credential: Credential | None = None

    @property
    def cached(self) -> Credential | None:
        """The credential currently held in the slot, if any."""
        return self._credential

    async def get_credential(self, force_refresh: bool = False) -> Credential:
        """Return a credential with more than the refresh margin left.

        The cached credential is returned without any I/O when it exists, is
        not being force-refreshed, and has more than ``refresh_margin`` of
        lifetime remaining.  Otherwise a new one is minted and cached.

        Args:
            force_refresh: Bypass the cache, e.g. after a 401 from a provider.

        Returns:
            A usable ``Credential``.

        Raises:
            CredentialExchangeFailed: The token endpoint rejected the assertion
                or could not be reached.  Nothing is cached.
        """
        now = self._clock()
        cached = self._credential
        if not force_refresh and cached is not None and cached.remaining(now) > self._refresh_margin:
            return cached

        logger.info(
            "Generating new access token",
            client_email=self._key.client_email,
            forced=force_refresh,
        )
        credential = await self._exchange(now)
        self._credential = credential
        return credential

    def invalidate(self) -> None:
        """Discard the cached credential so the next request mints a new one."""
        if self._credential is not None:
            logger.info("Access token invalidated", client_email=self._key.client_email)
        self._credential = None

    def build_assertion(self, now: datetime) -> str:
        """Sign the RS256 JWT assertion presented to the token endpoint."""
        issued_at = int(now.timestamp())
        payload = {
            "iss": self._key.client_email,
            "scope": self._scopes,
            "aud": self._key.token_uri,
            "iat": issued_at,
            "exp": issued_at + int(ASSERTION_LIFETIME.total_seconds()),
        }
        return jwt.encode(self._signer, payload).decode("ascii")

    async def _exchange(self, now: datetime) -> Credential:
        assertion = self.build_assertion(now)
        try:
            response = await self._http.post(
                self._key.token_uri,
                data={"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion},
                timeout=TOKEN_EXCHANGE_TIMEOUT,
            )
        except httpx.TransportError as exc:
            logger.error("Token exchange unreachable", exception=str(exc))
            raise CredentialExchangeFailed(
                f"Token exchange failed: {exc}",
                kind=ErrorKind.TRANSIENT,
                api_name="oauth_token",
            ) from exc

        error = error_for_status(response.status_code, response.text, api_name="oauth_token")
        if error is not None:
            logger.error(
                "Token exchange failed",
                status_code=response.status_code,
                detail=response.text[:500],
            )
            # A rejected assertion will not be fixed by signing another one.
            kind = ErrorKind.PERMANENT if error.kind == ErrorKind.AUTHENTICATION else error.kind
            raise CredentialExchangeFailed(
                f"Token exchange failed: {response.status_code}",
                kind=kind,
                status_code=response.status_code,
                api_name="oauth_token",
            )

        try:
            data = response.json()
            token = data["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise CredentialExchangeFailed(
                "Token exchange returned no access_token",
                kind=ErrorKind.MALFORMED_RESPONSE,
                status_code=response.status_code,
                api_name="oauth_token",
            ) from exc

        expires_in = int(data.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS))
        return Credential(token=SecretStr(token), expires_at=now + timedelta(seconds=expires_in))
