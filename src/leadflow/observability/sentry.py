"""Sentry error reporting wired through structlog.

``init_sentry(dsn)`` is a no-op for an empty DSN.  ``get_sentry_processor()``
returns the structlog processor that forwards ERROR events, so failures that
the service logs and absorbs (exhausted notification retries, research
fallbacks logged at error level) still reach Sentry.
"""

from __future__ import annotations

import logging

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor


def init_sentry(dsn: str, *, environment: str = "development") -> bool:
    """Initialize the Sentry SDK.

    Args:
        dsn: Sentry DSN.  Empty disables reporting.
        environment: Environment tag attached to events.

    Returns:
        ``True`` when the SDK was initialized.
    """
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
        # structlog-sentry reports errors; the logging integration would duplicate them.
        integrations=[LoggingIntegration(event_level=None, level=None)],
    )
    return True


def get_sentry_processor() -> structlog.types.Processor:
    """Processor forwarding ERROR-level events; place it before the renderer."""
    return SentryProcessor(event_level=logging.ERROR)
