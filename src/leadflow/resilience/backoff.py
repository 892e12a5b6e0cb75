"""Backoff policy: which failures are worth retrying, and how long to wait.

Pure decision logic with no I/O.  ``invoke`` in ``leadflow.resilience.retry``
feeds these decisions to tenacity.
"""

from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass, field

from leadflow.domain.errors import ServiceError
from leadflow.domain.types import ErrorKind

_DEFAULT_RETRYABLE = frozenset({ErrorKind.TRANSIENT, ErrorKind.RATE_LIMITED})


@dataclass(frozen=True)
class AttemptOutcome:
    """Decision taken after a failed attempt.

    ``delay_before_next`` is ``None`` when the failure is terminal.
    """

    attempt_number: int
    error: BaseException | None
    delay_before_next: float | None

    @property
    def terminal(self) -> bool:
        return self.delay_before_next is None


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with a cap and optional additive jitter.

    Attributes:
        initial_delay: Seconds to wait before the first retry.
        multiplier: Growth factor applied per retry.
        max_delay: Upper bound on the computed delay (before jitter).
        max_retries: Retries allowed after the initial attempt.
        attempt_timeout: Per-attempt timeout in seconds (``None`` disables it).
        jitter: Upper bound of a uniform random addition to each delay.
        retryable_kinds: Error kinds that may be retried.
    """

    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    max_retries: int = 3
    attempt_timeout: float | None = 30.0
    jitter: float = 0.0
    retryable_kinds: frozenset[ErrorKind] = field(default=_DEFAULT_RETRYABLE)

    def is_retryable(self, error: BaseException) -> bool:
        """Return ``True`` when *error* carries a retryable kind tag."""
        if not isinstance(error, ServiceError):
            return False
        return error.kind in self.retryable_kinds

    def next_delay(self, attempt_index: int) -> float:
        """Seconds to sleep after the failed attempt at *attempt_index* (0-based)."""
        delay = min(self.initial_delay * self.multiplier**attempt_index, self.max_delay)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    def outcome(self, error: BaseException, attempt_index: int) -> AttemptOutcome:
        """Classify a failed attempt as terminal or retry-after-delay."""
        if not self.is_retryable(error) or attempt_index >= self.max_retries:
            return AttemptOutcome(attempt_index, error, None)
        return AttemptOutcome(attempt_index, error, self.next_delay(attempt_index))

    def without(self, *kinds: ErrorKind) -> BackoffPolicy:
        """Copy of this policy that treats *kinds* as terminal.

        Used at call sites where one more attempt is too costly, e.g. a 429
        against a paid quota.
        """
        return dataclasses.replace(self, retryable_kinds=self.retryable_kinds - set(kinds))

    def with_retryable(self, *kinds: ErrorKind) -> BackoffPolicy:
        """Copy of this policy that also retries *kinds*."""
        return dataclasses.replace(self, retryable_kinds=self.retryable_kinds | set(kinds))

    def with_jitter(self, jitter: float) -> BackoffPolicy:
        return dataclasses.replace(self, jitter=jitter)


DEFAULT_POLICY = BackoffPolicy()

# Email delivery sits on a user-facing request: same retry count, tighter cap.
NOTIFICATION_POLICY = BackoffPolicy(max_delay=4.0)

# Model calls: 429/402 cost money and surface immediately; a 401 earns exactly
# one retry with a refreshed credential (enforced by the caller).
PROVIDER_POLICY = BackoffPolicy(
    max_delay=5.0,
    max_retries=2,
    retryable_kinds=frozenset({ErrorKind.TRANSIENT, ErrorKind.AUTHENTICATION}),
)
