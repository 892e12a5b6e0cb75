"""Prometheus metrics instrumentation for the lead intake service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the counters below.
- ``RETRY_ATTEMPTS``: Counter of retries scheduled by the invoker, per API.
- ``ENRICHMENT_RESOLUTIONS``: Counter of resolved enrichment records, per source.
- ``NOTIFICATIONS``: Counter of email dispatch outcomes.
- ``CHAT_REPLIES``: Counter of chat replies, generated or fallback.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

RETRY_ATTEMPTS: Counter = Counter(
    "leadflow_retry_attempts_total",
    "Number of retries scheduled after a retryable failure",
    ["api_name"],
)

ENRICHMENT_RESOLUTIONS: Counter = Counter(
    "leadflow_enrichment_resolutions_total",
    "Enrichment records returned, labelled by where they came from",
    ["source"],
)

NOTIFICATIONS: Counter = Counter(
    "leadflow_notifications_total",
    "Email dispatch outcomes",
    ["outcome"],
)

CHAT_REPLIES: Counter = Counter(
    "leadflow_chat_replies_total",
    "Chat replies sent, labelled generated or fallback",
    ["outcome"],
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
