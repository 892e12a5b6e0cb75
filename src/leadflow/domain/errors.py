"""Exception hierarchy for outbound service calls.

Every failure raised at an integration boundary is a ``ServiceError`` whose
``kind`` is set where the failure is observed (HTTP status, transport error,
timeout, parse failure).  Backoff decisions are a match on that tag.
"""

from __future__ import annotations

from leadflow.domain.types import ErrorKind


class LeadflowError(Exception):
    """Base class for all errors raised by the leadflow package."""


class ServiceError(LeadflowError):
    """A classified failure from an external service.

    Attributes:
        kind: The error classification used by backoff policies.
        status_code: HTTP status code, when the failure came from a response.
        api_name: Name of the external API that failed.
    """

    default_kind: ErrorKind = ErrorKind.PERMANENT

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
        api_name: str | None = None,
    ) -> None:
        self.kind = kind or self.default_kind
        self.status_code = status_code
        self.api_name = api_name
        super().__init__(message)


class AuthenticationFailed(ServiceError):
    """The provider rejected the credential (HTTP 401)."""

    default_kind = ErrorKind.AUTHENTICATION


class RateLimited(ServiceError):
    """The provider throttled the request (HTTP 429)."""

    default_kind = ErrorKind.RATE_LIMITED


class QuotaExceeded(ServiceError):
    """The account's paid quota is exhausted (HTTP 402)."""

    default_kind = ErrorKind.QUOTA_EXCEEDED


class TransientError(ServiceError):
    """Network failure, timeout, or 5xx response."""

    default_kind = ErrorKind.TRANSIENT


class MalformedResponse(ServiceError):
    """A response arrived but its content could not be used."""

    default_kind = ErrorKind.MALFORMED_RESPONSE


class PermanentError(ServiceError):
    """A 4xx response other than 401/402/429, or any other non-retryable failure."""

    default_kind = ErrorKind.PERMANENT


class CredentialExchangeFailed(ServiceError):
    """The token endpoint refused to exchange the signed assertion."""

    default_kind = ErrorKind.AUTHENTICATION


class NotificationDeliveryFailed(LeadflowError):
    """An email could not be delivered after the retry budget was spent.

    Attributes:
        cause: The terminal error from the last attempt.
        recipient: The address the message was meant for.
        attempts: How many send attempts were made.
    """

    def __init__(self, cause: BaseException, recipient: str, attempts: int = 1) -> None:
        self.cause = cause
        self.recipient = recipient
        self.attempts = attempts
        super().__init__(f"Email delivery to {recipient} failed: {cause}")
