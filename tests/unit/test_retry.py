"""
Unit tests for call_with_retry.

Tests cover:
- Success on first and later attempts
- Transient errors exhaust the attempt budget
- Non-transient errors stop immediately
- Fixed delay between attempts
"""

import pytest

from trading.core.retry import call_with_retry


class TransientError(Exception):
    pass


class PermanentError(Exception):
    pass


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransientError)


class FlakyOperation:
    """Fails with the given errors in order, then returns 'ok'."""

    def __init__(self, *errors: Exception):
        self._errors = list(errors)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return "ok"


@pytest.fixture
def sleeps() -> list:
    return []


class TestCallWithRetry:
    """Tests for bounded retry outcomes."""

    def test_first_attempt_success(self, sleeps):
        """
        GIVEN an operation that succeeds
        WHEN it is run with retry
        THEN the value is returned after one attempt and no sleep
        """
        op = FlakyOperation()

        outcome = call_with_retry(op, max_attempts=4, delay_seconds=1.0,
                                  is_transient=_is_transient, sleep=sleeps.append)

        assert outcome.succeeded
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert sleeps == []

    def test_transient_errors_then_success(self, sleeps):
        """
        GIVEN an operation failing transiently twice
        WHEN it is run with 4 attempts
        THEN it succeeds on the third attempt after two fixed delays
        """
        op = FlakyOperation(TransientError("a"), TransientError("b"))

        outcome = call_with_retry(op, max_attempts=4, delay_seconds=1.0,
                                  is_transient=_is_transient, sleep=sleeps.append)

        assert outcome.succeeded
        assert outcome.attempts == 3
        assert sleeps == [1.0, 1.0]

    def test_transient_errors_exhaust_attempts(self, sleeps):
        """
        GIVEN an operation that always fails transiently
        WHEN it is run with 4 attempts
        THEN the outcome is an exhausted failure after exactly 4 calls
        """
        op = FlakyOperation(*[TransientError(str(i)) for i in range(10)])

        outcome = call_with_retry(op, max_attempts=4, delay_seconds=0.5,
                                  is_transient=_is_transient, sleep=sleeps.append)

        assert not outcome.succeeded
        assert outcome.exhausted
        assert isinstance(outcome.error, TransientError)
        assert op.calls == 4
        assert outcome.attempts == 4
        assert sleeps == [0.5, 0.5, 0.5]

    def test_permanent_error_is_not_retried(self, sleeps):
        """
        GIVEN an operation failing with a non-transient error
        WHEN it is run with retry
        THEN it stops after one call and is not marked exhausted
        """
        op = FlakyOperation(PermanentError("bad request"))

        outcome = call_with_retry(op, max_attempts=4, delay_seconds=1.0,
                                  is_transient=_is_transient, sleep=sleeps.append)

        assert not outcome.succeeded
        assert not outcome.exhausted
        assert isinstance(outcome.error, PermanentError)
        assert op.calls == 1
        assert sleeps == []

    def test_single_attempt_budget(self, sleeps):
        """
        GIVEN max_attempts=1
        WHEN the operation fails transiently
        THEN there is no retry
        """
        op = FlakyOperation(TransientError("x"))

        outcome = call_with_retry(op, max_attempts=1, delay_seconds=1.0,
                                  is_transient=_is_transient, sleep=sleeps.append)

        assert outcome.exhausted
        assert op.calls == 1
