# SPDX-License-Identifier: Apache-2.0
"""
Retry with exponential backoff.
"""

import pytest

from aetherfy_vectors.exceptions import (
    AuthenticationError,
    NetworkError,
    RateLimitExceededError,
    ServiceUnavailableError,
    ValidationError,
)
from aetherfy_vectors.retry import RetryPolicy, retry_with_backoff


class Flaky:
    """Fails with the given errors in order, then returns 'done'."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "done"


def test_delay_for_grows_and_caps():
    """Verify the un-jittered delay grows geometrically and respects max_delay."""
    policy = RetryPolicy(base_delay=1.0, max_delay=5.0, backoff_factor=2.0)
    assert [policy.delay_for(i) for i in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_jittered_delay_stays_in_band():
    """Verify jitter keeps each sleep within [0.5 * d, d]."""
    policy = RetryPolicy(base_delay=2.0, max_delay=30.0, jitter=True)
    for attempt in range(4):
        d = policy.delay_for(attempt)
        for _ in range(50):
            assert 0.5 * d <= policy.sleep_for(attempt) <= d


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_retries": -1},
        {"base_delay": 0},
        {"max_delay": -1.0},
        {"backoff_factor": 0.5},
        {"base_delay": 10.0, "max_delay": 1.0},
    ],
)
def test_invalid_policy_rejected(kwargs):
    """Verify nonsensical configurations raise ValueError."""
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_sleep(sleeps):
    """Verify an immediately successful operation runs once without sleeping."""
    op = Flaky()
    assert await RetryPolicy().run(op) == "done"
    assert op.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_transient_errors_retried_until_success(sleeps):
    """Verify transient failures are retried and the eventual result returned."""
    op = Flaky(ServiceUnavailableError(), NetworkError())
    result = await RetryPolicy(jitter=False).run(op)
    assert result == "done"
    assert op.calls == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_service_unavailable_exhausts_retries(sleeps):
    """Verify max_retries retries happen with increasing, capped delays."""
    policy = RetryPolicy(max_retries=4, base_delay=1.0, max_delay=3.0, jitter=False)
    errors = [ServiceUnavailableError(f"attempt {i}") for i in range(5)]
    op = Flaky(*errors)

    with pytest.raises(ServiceUnavailableError) as exc_info:
        await policy.run(op)

    assert op.calls == 5
    assert sleeps == [1.0, 2.0, 3.0, 3.0]
    # the last error is surfaced unchanged
    assert exc_info.value is errors[-1]


@pytest.mark.asyncio
async def test_validation_error_attempted_once(sleeps):
    """Verify non-retryable errors are raised immediately."""
    op = Flaky(ValidationError("bad"))
    with pytest.raises(ValidationError):
        await RetryPolicy().run(op)
    assert op.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_rate_limit_retry_depends_on_retry_after(sleeps):
    """Verify rate limits are retried only when the server says when."""
    op = Flaky(RateLimitExceededError(retry_after=2))
    assert await RetryPolicy(jitter=False).run(op) == "done"
    assert op.calls == 2

    op = Flaky(RateLimitExceededError())
    with pytest.raises(RateLimitExceededError):
        await RetryPolicy(jitter=False).run(op)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_custom_retry_condition(sleeps):
    """Verify a caller-supplied predicate overrides the default."""
    op = Flaky(AuthenticationError(), AuthenticationError())
    result = await RetryPolicy(jitter=False).run(op, retry_condition=lambda e: True)
    assert result == "done"
    assert op.calls == 3


@pytest.mark.asyncio
async def test_non_sdk_errors_not_retried_by_default(sleeps):
    """Verify arbitrary exceptions are surfaced without retry."""
    op = Flaky(KeyError("x"))
    with pytest.raises(KeyError):
        await RetryPolicy().run(op)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt(sleeps):
    """Verify max_retries=0 attempts exactly once."""
    op = Flaky(ServiceUnavailableError())
    with pytest.raises(ServiceUnavailableError):
        await RetryPolicy(max_retries=0).run(op)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_retry_with_backoff_functional_form(sleeps):
    """Verify the functional form honours its arguments and the backoff hook."""
    seen = []
    op = Flaky(NetworkError(), NetworkError())
    result = await retry_with_backoff(
        op,
        max_retries=2,
        base_delay=0.5,
        max_delay=10.0,
        backoff_factor=3.0,
        jitter=False,
        on_backoff=lambda n, delay, exc: seen.append((n, delay, type(exc).__name__)),
    )
    assert result == "done"
    assert sleeps == [0.5, 1.5]
    assert seen == [(1, 0.5, "NetworkError"), (2, 1.5, "NetworkError")]


@pytest.mark.asyncio
async def test_failing_backoff_hook_does_not_break_retry(sleeps):
    """Verify an exception inside on_backoff is contained."""

    def bad_hook(*_):
        raise RuntimeError("hook failed")

    op = Flaky(NetworkError())
    assert await retry_with_backoff(op, jitter=False, on_backoff=bad_hook) == "done"


@pytest.mark.asyncio
async def test_backoff_is_logged_at_warning(sleeps, caplog):
    """Verify every backoff emits a WARNING record."""
    op = Flaky(ServiceUnavailableError())
    with caplog.at_level("WARNING", logger="aetherfy_vectors.retry"):
        await RetryPolicy(jitter=False).run(op)
    assert any("retry 1/3" in r.getMessage() for r in caplog.records)
