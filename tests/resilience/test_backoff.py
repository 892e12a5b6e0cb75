"""Tests for BackoffPolicy: delay schedule, classification, and overrides."""

from __future__ import annotations

import pytest

from leadflow.domain.errors import (
    AuthenticationFailed,
    MalformedResponse,
    PermanentError,
    QuotaExceeded,
    RateLimited,
    TransientError,
)
from leadflow.domain.types import ErrorKind
from leadflow.resilience.backoff import (
    DEFAULT_POLICY,
    NOTIFICATION_POLICY,
    PROVIDER_POLICY,
    BackoffPolicy,
)


class TestNextDelay:
    """Exponential schedule with a cap."""

    def test_doubles_from_initial_delay(self) -> None:
        policy = BackoffPolicy()
        assert [policy.next_delay(i) for i in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self) -> None:
        policy = BackoffPolicy(max_delay=5.0)
        assert [policy.next_delay(i) for i in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_jitter_adds_bounded_random_amount(self) -> None:
        policy = BackoffPolicy(jitter=0.5)
        for index in range(4):
            base = min(2.0**index, 30.0)
            delay = policy.next_delay(index)
            assert base <= delay <= base + 0.5

    def test_zero_jitter_is_deterministic(self) -> None:
        assert DEFAULT_POLICY.next_delay(2) == DEFAULT_POLICY.next_delay(2) == 4.0


class TestClassification:
    """Retry decisions are a match on the error's kind tag."""

    @pytest.mark.parametrize(
        "error",
        [TransientError("timeout"), RateLimited("slow down", status_code=429)],
    )
    def test_default_policy_retries_transient_and_rate_limited(self, error) -> None:
        assert DEFAULT_POLICY.is_retryable(error)

    @pytest.mark.parametrize(
        "error",
        [
            AuthenticationFailed("401", status_code=401),
            QuotaExceeded("402", status_code=402),
            PermanentError("404", status_code=404),
            MalformedResponse("no json"),
        ],
    )
    def test_default_policy_does_not_retry_other_kinds(self, error) -> None:
        assert not DEFAULT_POLICY.is_retryable(error)

    def test_untagged_exceptions_are_not_retryable(self) -> None:
        assert not DEFAULT_POLICY.is_retryable(ValueError("boom"))

    def test_kind_override_on_instance_wins(self) -> None:
        """A transport-layer error can be re-tagged where it is observed."""
        error = PermanentError("reset", kind=ErrorKind.TRANSIENT)
        assert DEFAULT_POLICY.is_retryable(error)


class TestOutcome:
    """Terminal vs. retry-after-delay decisions."""

    def test_retryable_error_within_budget_gets_delay(self) -> None:
        outcome = DEFAULT_POLICY.outcome(TransientError("x"), 1)
        assert not outcome.terminal
        assert outcome.delay_before_next == 2.0

    def test_retry_budget_exhausted_is_terminal(self) -> None:
        outcome = BackoffPolicy(max_retries=2).outcome(TransientError("x"), 2)
        assert outcome.terminal

    def test_non_retryable_is_terminal_immediately(self) -> None:
        outcome = DEFAULT_POLICY.outcome(PermanentError("x"), 0)
        assert outcome.terminal
        assert outcome.attempt_number == 0


class TestOverrides:
    """Per-call-site policy adjustments."""

    def test_without_removes_kind(self) -> None:
        policy = DEFAULT_POLICY.without(ErrorKind.RATE_LIMITED)
        assert not policy.is_retryable(RateLimited("429"))
        assert policy.is_retryable(TransientError("x"))
        # The shared policy is untouched.
        assert DEFAULT_POLICY.is_retryable(RateLimited("429"))

    def test_with_retryable_adds_kind(self) -> None:
        policy = DEFAULT_POLICY.with_retryable(ErrorKind.MALFORMED_RESPONSE)
        assert policy.is_retryable(MalformedResponse("bad"))

    def test_with_jitter(self) -> None:
        assert DEFAULT_POLICY.with_jitter(0.25).jitter == 0.25
        assert DEFAULT_POLICY.jitter == 0.0


class TestBuiltInPolicies:
    def test_notification_policy_caps_at_four_seconds(self) -> None:
        assert NOTIFICATION_POLICY.max_retries == 3
        assert NOTIFICATION_POLICY.next_delay(5) == 4.0

    def test_provider_policy_surfaces_rate_limits_and_quota(self) -> None:
        assert not PROVIDER_POLICY.is_retryable(RateLimited("429"))
        assert not PROVIDER_POLICY.is_retryable(QuotaExceeded("402"))
        assert PROVIDER_POLICY.is_retryable(AuthenticationFailed("401"))
        assert PROVIDER_POLICY.is_retryable(TransientError("503"))
        assert PROVIDER_POLICY.max_retries == 2
