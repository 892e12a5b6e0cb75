"""Translate httpx transport failures and HTTP statuses into tagged ``ServiceError``s."""

from __future__ import annotations

from typing import Any

import httpx

from leadflow.domain.errors import (
    AuthenticationFailed,
    PermanentError,
    QuotaExceeded,
    RateLimited,
    ServiceError,
    TransientError,
)

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({500, 502, 503, 504})

# Keep logged response bodies short; provider errors can echo the request.
_MAX_DETAIL_CHARS = 500


def error_for_status(status_code: int, detail: str, *, api_name: str) -> ServiceError | None:
    """Return the tagged error for *status_code*, or ``None`` for a success status."""
    if status_code < 400:
        return None
    message = f"{api_name} returned HTTP {status_code}: {detail[:_MAX_DETAIL_CHARS]}"
    if status_code == 401:
        return AuthenticationFailed(message, status_code=status_code, api_name=api_name)
    if status_code == 402:
        return QuotaExceeded(message, status_code=status_code, api_name=api_name)
    if status_code == 429:
        return RateLimited(message, status_code=status_code, api_name=api_name)
    if status_code in RETRYABLE_STATUS_CODES:
        return TransientError(message, status_code=status_code, api_name=api_name)
    return PermanentError(message, status_code=status_code, api_name=api_name)


def raise_for_status(response: httpx.Response, *, api_name: str) -> None:
    """Raise the tagged error matching *response*'s status, if it is not a success."""
    error = error_for_status(response.status_code, response.text, api_name=api_name)
    if error is not None:
        raise error


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    api_name: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send one HTTP request and classify any failure.

    Timeouts and connection-level failures (refused, reset, DNS) become
    ``TransientError``; non-2xx responses go through ``raise_for_status``.

    Args:
        client: The shared async HTTP client.
        method: HTTP method.
        url: Target URL.
        api_name: Name used in error messages and logs.
        **kwargs: Passed through to ``httpx.AsyncClient.request``.

    Returns:
        The successful response.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise TransientError(f"{api_name} request timed out", api_name=api_name) from exc
    except httpx.TransportError as exc:
        raise TransientError(f"{api_name} network error: {exc}", api_name=api_name) from exc
    raise_for_status(response, api_name=api_name)
    return response
