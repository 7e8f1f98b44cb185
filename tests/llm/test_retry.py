import pytest

from docmeta.http import PermanentUpstreamError, TransientUpstreamError
from docmeta.llm import RetryPolicy, retry_call


class Flaky:
    def __init__(self, failures) -> None:
        self.failures = list(failures)
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


def test_transient_failures_are_retried_with_backoff() -> None:
    sleeps = []
    func = Flaky([TransientUpstreamError(503, "busy"), TransientUpstreamError(429, "slow down")])

    result = retry_call(func, RetryPolicy(), sleep=sleeps.append)

    assert result == "ok"
    assert func.calls == 3
    assert sleeps == [1.0, 2.0]


def test_exhausted_retries_raise_last_error() -> None:
    sleeps = []
    func = Flaky([TransientUpstreamError(500, "boom")] * 5)

    with pytest.raises(TransientUpstreamError):
        retry_call(func, RetryPolicy(max_retries=3), sleep=sleeps.append)

    assert func.calls == 4
    assert sleeps == [1.0, 2.0, 4.0]


def test_permanent_failure_is_not_retried() -> None:
    sleeps = []
    func = Flaky([PermanentUpstreamError(400, "bad request")])

    with pytest.raises(PermanentUpstreamError):
        retry_call(func, RetryPolicy(), sleep=sleeps.append)

    assert func.calls == 1
    assert sleeps == []


def test_unrelated_exceptions_propagate() -> None:
    func = Flaky([ValueError("nope")])

    with pytest.raises(ValueError):
        retry_call(func, RetryPolicy(), sleep=lambda _delay: None)

    assert func.calls == 1


def test_on_retry_is_notified() -> None:
    seen = []
    func = Flaky([TransientUpstreamError(502, "gateway")])

    retry_call(
        func,
        RetryPolicy(),
        sleep=lambda _delay: None,
        on_retry=lambda attempt, exc: seen.append((attempt, exc.status)),
    )

    assert seen == [(1, 502)]


def test_delay_schedule() -> None:
    policy = RetryPolicy(base_delay=0.5, multiplier=3.0)

    assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.5, 4.5]
