"""Retrying invoker built on tenacity.

``invoke`` runs a zero-argument coroutine factory under a ``BackoffPolicy``:
each attempt gets its own timeout, failures are classified by their
``ErrorKind`` tag, and the last error is re-raised unchanged once the policy
says stop.  The invoker performs no deduplication; operations must be safe to
repeat.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from leadflow.domain.errors import TransientError
from leadflow.observability.metrics import RETRY_ATTEMPTS
from leadflow.resilience.backoff import DEFAULT_POLICY, BackoffPolicy

logger = structlog.get_logger()

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class InvocationResult(Generic[T]):
    """Successful result of ``invoke`` plus how many attempts it took."""

    value: T
    attempts: int

    @property
    def retried(self) -> bool:
        return self.attempts > 1


def _policy_wait(policy: BackoffPolicy) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        # attempt_number counts attempts made so far; the first retry uses index 0.
        return policy.next_delay(retry_state.attempt_number - 1)

    return wait


def _before_sleep_log(api_name: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        RETRY_ATTEMPTS.labels(api_name=api_name).inc()
        logger.warning(
            "Retrying API call",
            api_name=api_name,
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep if retry_state.next_action else 0,
            error_kind=str(getattr(exception, "kind", "")),
            exception=str(exception),
        )

    return before_sleep


async def _run_attempt(operation: Operation[T], timeout: float | None, api_name: str) -> T:
    try:
        async with asyncio.timeout(timeout):
            return await operation()
    except TimeoutError as exc:
        raise TransientError(
            f"{api_name} attempt exceeded {timeout}s timeout", api_name=api_name
        ) from exc


async def invoke(
    operation: Operation[T],
    policy: BackoffPolicy = DEFAULT_POLICY,
    *,
    api_name: str = "unknown",
    sleep: Sleep = asyncio.sleep,
) -> InvocationResult[T]:
    """Call *operation* until it succeeds or *policy* declares the failure terminal.

    Args:
        operation: Zero-argument callable returning an awaitable.  Called once
            per attempt.
        policy: Retry classification, delays, attempt cap, and per-attempt
            timeout.
        api_name: Human-readable name for the API (used in logs and metrics).
        sleep: Coroutine used to wait between attempts.  Tests pass a recorder.

    Returns:
        An ``InvocationResult`` with the operation's value and attempt count.

    Raises:
        Exception: The error from the last attempt, unchanged.  A per-attempt
            timeout surfaces as ``TransientError``.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=_policy_wait(policy),
        retry=retry_if_exception(policy.is_retryable),
        before_sleep=_before_sleep_log(api_name),
        sleep=sleep,
        reraise=True,
    )

    attempts = 0
    try:
        async for attempt in retrying:
            attempts = attempt.retry_state.attempt_number
            with attempt:
                value = await _run_attempt(operation, policy.attempt_timeout, api_name)
    except Exception as exc:
        outcome = policy.outcome(exc, attempts - 1)
        logger.error(
            "API call failed",
            api_name=api_name,
            attempts=attempts,
            error_kind=str(getattr(exc, "kind", "")),
            reason="exhausted" if policy.is_retryable(exc) else "not_retryable",
            terminal=outcome.terminal,
            exception=str(exc),
        )
        raise

    if attempts > 1:
        logger.info("API call succeeded after retry", api_name=api_name, attempts=attempts)
    return InvocationResult(value=value, attempts=attempts)
