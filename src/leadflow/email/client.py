"""Resend API client for sending transactional e-mail.

Provides the ``ResendClient`` class.  A single ``send`` call is one HTTP
request with no retries of its own; ``NotificationDispatcher`` wraps it in
the retrying invoker.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import SecretStr

from leadflow.email.models import OutboundEmail
from leadflow.resilience.http import send_request

RESEND_API_URL = "https://api.resend.com/emails"
API_NAME = "resend"


class ResendClient:
    """Thin wrapper around the Resend ``POST /emails`` endpoint.

    Args:
        api_key: Resend API key (``re_...``).
        http_client: Shared async HTTP client.
        api_url: Endpoint override, for tests and regional hosts.
    """

    def __init__(
        self,
        api_key: SecretStr,
        http_client: httpx.AsyncClient,
        *,
        api_url: str = RESEND_API_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._api_url = api_url

    async def send(self, outbound: OutboundEmail) -> str:
        """Send one e-mail.

        Args:
            outbound: The message to send.

        Returns:
            The provider's message ID (empty if the response omitted it).

        Raises:
            ServiceError: Tagged by status (see ``leadflow.resilience.http``).
        """
        payload: dict[str, Any] = {
            "from": outbound.sender,
            "to": [outbound.to],
            "subject": outbound.subject,
            "html": outbound.html,
        }
        if outbound.reply_to:
            payload["reply_to"] = outbound.reply_to

        response = await send_request(
            self._http,
            "POST",
            self._api_url,
            api_name=API_NAME,
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key.get_secret_value().strip()}"},
        )
        # The message is already accepted at this point; a missing id is not a failure.
        try:
            return str(response.json().get("id", ""))
        except ValueError:
            return ""
