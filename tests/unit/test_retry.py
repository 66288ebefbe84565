"""Unit tests for the retry decorator and its per-attempt hook."""

import pytest

from jobintel.retry import retry


class Flaky:
    def __init__(self, failures: int, exc: type = ConnectionError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self, *args):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc("flaky")
        return args


@pytest.mark.unit
def test_hook_runs_before_every_attempt(no_retry_sleep):
    seen = []
    flaky = Flaky(failures=2)
    wrapped = retry(max_attempts=3, before_attempt=lambda attempt, *args: seen.append((attempt, args)))(flaky)

    assert wrapped("a", 1) == ("a", 1)
    assert seen == [(1, ("a", 1)), (2, ("a", 1)), (3, ("a", 1))]


@pytest.mark.unit
def test_hook_error_stops_retrying(no_retry_sleep):
    flaky = Flaky(failures=5)

    def refuse_second(attempt, *args):
        if attempt > 1:
            raise ConnectionError("window closed")

    wrapped = retry(max_attempts=4, before_attempt=refuse_second)(flaky)

    with pytest.raises(ConnectionError, match="window closed"):
        wrapped()
    assert flaky.calls == 1


@pytest.mark.unit
def test_non_retryable_error_propagates_immediately(no_retry_sleep):
    flaky = Flaky(failures=1, exc=KeyError)
    wrapped = retry(max_attempts=3, retryable=(ConnectionError,))(flaky)

    with pytest.raises(KeyError):
        wrapped()
    assert flaky.calls == 1


@pytest.mark.unit
def test_last_failure_is_reraised(no_retry_sleep):
    flaky = Flaky(failures=10)
    with pytest.raises(ConnectionError):
        retry(max_attempts=2)(flaky)()
    assert flaky.calls == 2


@pytest.mark.unit
def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        retry(max_attempts=0)
