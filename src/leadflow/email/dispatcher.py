"""Notification dispatcher: deliver a ``DispatchRequest`` with retries.

The dispatcher reports terminal failure by raising
``NotificationDeliveryFailed``.  Whether that failure is fatal is the
caller's decision: a dedicated "send this e-mail" endpoint turns it into an
error response, while a caller that only notifies as a side effect logs it
and carries on.
"""

from __future__ import annotations

import asyncio

import structlog

from leadflow.domain.errors import NotificationDeliveryFailed, ServiceError
from leadflow.email.client import API_NAME, ResendClient
from leadflow.email.models import DispatchRequest, DispatchResult, OutboundEmail
from leadflow.observability.metrics import NOTIFICATIONS
from leadflow.resilience.backoff import NOTIFICATION_POLICY, BackoffPolicy
from leadflow.resilience.retry import Sleep, invoke

logger = structlog.get_logger()


class NotificationDispatcher:
    """Send transactional e-mail through the retrying invoker.

    Args:
        client: Provider client performing a single send.
        default_sender: ``From`` address used when a request has none.
        policy: Backoff policy for delivery; defaults to ``NOTIFICATION_POLICY``.
        sleep: Coroutine used between attempts.
    """

    def __init__(
        self,
        client: ResendClient,
        *,
        default_sender: str,
        policy: BackoffPolicy = NOTIFICATION_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._default_sender = default_sender
        self._policy = policy
        self._sleep = sleep

    async def send(self, request: DispatchRequest) -> DispatchResult:
        """Deliver *request*, retrying transient provider failures.

        Returns:
            The provider message ID and the number of attempts used.

        Raises:
            NotificationDeliveryFailed: Retries were exhausted or the failure
                was not retryable.
        """
        outbound = OutboundEmail(
            sender=request.sender or self._default_sender,
            to=request.recipient,
            subject=request.subject,
            html=request.html,
            reply_to=request.reply_to,
        )

        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return await self._client.send(outbound)

        try:
            result = await invoke(
                attempt,
                self._policy,
                api_name=API_NAME,
                sleep=self._sleep,
            )
        except ServiceError as exc:
            NOTIFICATIONS.labels(outcome="failed").inc()
            logger.error(
                "Email delivery failed",
                recipient=request.recipient,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
                attempts=attempts,
            )
            raise NotificationDeliveryFailed(exc, request.recipient, attempts) from exc

        NOTIFICATIONS.labels(outcome="sent").inc()
        logger.info(
            "Email sent",
            recipient=request.recipient,
            message_id=result.value,
            attempts=result.attempts,
        )
        return DispatchResult(message_id=result.value, attempts=result.attempts)
