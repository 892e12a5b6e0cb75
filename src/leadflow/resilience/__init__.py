"""Resilience infrastructure for outbound calls: backoff policies and the retrying invoker."""

from leadflow.resilience.backoff import (
    DEFAULT_POLICY,
    NOTIFICATION_POLICY,
    PROVIDER_POLICY,
    AttemptOutcome,
    BackoffPolicy,
)
from leadflow.resilience.http import error_for_status, raise_for_status, send_request
from leadflow.resilience.retry import InvocationResult, invoke

__all__ = [
    "DEFAULT_POLICY",
    "NOTIFICATION_POLICY",
    "PROVIDER_POLICY",
    "AttemptOutcome",
    "BackoffPolicy",
    "InvocationResult",
    "error_for_status",
    "invoke",
    "raise_for_status",
    "send_request",
]
