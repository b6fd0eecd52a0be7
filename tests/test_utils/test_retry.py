from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from depscout.exceptions import NetworkError, RequestTimeoutError
from depscout.utils.retry import (
    AGGRESSIVE,
    CONSERVATIVE,
    NETWORK_ONLY,
    STANDARD,
    RetryPolicy,
    compute_delay,
    is_retryable_error,
    retry_with_backoff,
)


# ==============================================================================
# Fixtures
# ==============================================================================


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


def _http_status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


# ==============================================================================
# Retryability
# ==============================================================================


@pytest.mark.unit
class TestIsRetryableError:
    """Tests for the default retry predicate."""

    def test_none_is_not_retryable(self) -> None:
        assert is_retryable_error(None) is False

    @pytest.mark.parametrize(
        "error",
        [
            RequestTimeoutError(),
            httpx.ReadTimeout("slow"),
            asyncio.TimeoutError(),
        ],
    )
    def test_timeouts_fail_fast(self, error: BaseException) -> None:
        """Test timeouts are never retried."""
        assert is_retryable_error(error) is False

    def test_transport_errors_are_retried(self) -> None:
        assert is_retryable_error(httpx.ConnectError("refused")) is True

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable_status_on_error(self, status: int) -> None:
        error = NetworkError("HTTP error", status_code=status)
        assert is_retryable_error(error) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 501])
    def test_permanent_status_on_error(self, status: int) -> None:
        error = NetworkError("HTTP error", status_code=status)
        assert is_retryable_error(error) is False

    def test_status_read_from_attached_response(self) -> None:
        """Test the status is looked up on ``error.response`` as a fallback."""
        assert is_retryable_error(_http_status_error(503)) is True
        assert is_retryable_error(_http_status_error(404)) is False

    def test_plain_exception_is_permanent(self) -> None:
        assert is_retryable_error(ValueError("bad")) is False


# ==============================================================================
# Policies and delays
# ==============================================================================


@pytest.mark.unit
class TestRetryPolicy:
    """Tests for RetryPolicy presets and delay computation."""

    def test_presets(self) -> None:
        assert STANDARD.max_attempts == 3
        assert STANDARD.initial_delay == 1.0
        assert CONSERVATIVE.max_attempts == 2
        assert AGGRESSIVE.max_attempts == 5
        assert AGGRESSIVE.initial_delay == 0.5

    def test_network_only_ignores_statuses(self) -> None:
        """Test NETWORK_ONLY retries transport failures but not HTTP statuses."""
        assert NETWORK_ONLY.should_retry(httpx.ConnectError("x"), 1) is True
        assert NETWORK_ONLY.should_retry(NetworkError("x", status_code=503), 1) is False
        assert NETWORK_ONLY.should_retry(httpx.ConnectTimeout("x"), 1) is False

    def test_with_overrides_returns_copy(self) -> None:
        policy = STANDARD.with_overrides(max_attempts=7)

        assert policy.max_attempts == 7
        assert STANDARD.max_attempts == 3

    def test_exponential_delay_without_jitter(self) -> None:
        policy = RetryPolicy(initial_delay=1.0, backoff_factor=2.0, max_delay=10.0, use_jitter=False)

        assert compute_delay(1, policy) == 1.0
        assert compute_delay(2, policy) == 2.0
        assert compute_delay(3, policy) == 4.0

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(initial_delay=1.0, backoff_factor=2.0, max_delay=5.0, use_jitter=False)
        assert compute_delay(10, policy) == 5.0

    def test_jitter_adds_up_to_a_quarter(self) -> None:
        """Test jitter scales with the random source, bounded by 25%."""
        policy = RetryPolicy(initial_delay=2.0, use_jitter=True)

        assert compute_delay(1, policy, random_fn=lambda: 0.0) == 2.0
        assert compute_delay(1, policy, random_fn=lambda: 1.0) == pytest.approx(2.5)


# ==============================================================================
# Retry loop
# ==============================================================================


@pytest.mark.unit
class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, fake_sleep: FakeSleep) -> None:
        calls = 0

        async def op() -> str:
            nonlocal calls
            calls += 1
            return "ok"

        result = await retry_with_backoff(op, STANDARD, sleep=fake_sleep)

        assert result == "ok"
        assert calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self, fake_sleep: FakeSleep) -> None:
        """Test two 503 failures followed by success take three attempts."""
        calls = 0

        async def op() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise NetworkError("HTTP error! status: 503", status_code=503)
            return "ok"

        policy = RetryPolicy(use_jitter=False)
        result = await retry_with_backoff(op, policy, sleep=fake_sleep)

        assert result == "ok"
        assert calls == 3
        assert fake_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, fake_sleep: FakeSleep) -> None:
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            await retry_with_backoff(op, RetryPolicy(max_attempts=3), sleep=fake_sleep)

        assert calls == 3
        assert len(fake_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_permanent_error_raised_immediately(self, fake_sleep: FakeSleep) -> None:
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            raise NetworkError("HTTP error! status: 404", status_code=404)

        with pytest.raises(NetworkError):
            await retry_with_backoff(op, STANDARD, sleep=fake_sleep)

        assert calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_timeout_not_retried(self, fake_sleep: FakeSleep) -> None:
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            raise RequestTimeoutError()

        with pytest.raises(RequestTimeoutError):
            await retry_with_backoff(op, STANDARD, sleep=fake_sleep)

        assert calls == 1

    @pytest.mark.asyncio
    async def test_on_retry_callback(self, fake_sleep: FakeSleep) -> None:
        """Test on_retry receives the error, attempt number and delay."""
        seen = []
        error = httpx.ConnectError("refused")

        async def op() -> None:
            raise error

        policy = RetryPolicy(max_attempts=2, use_jitter=False)
        with pytest.raises(httpx.ConnectError):
            await retry_with_backoff(
                op,
                policy,
                on_retry=lambda exc, attempt, delay: seen.append((exc, attempt, delay)),
                sleep=fake_sleep,
            )

        assert seen == [(error, 1, 1.0)]

    @pytest.mark.asyncio
    async def test_jitter_uses_injected_random(self, fake_sleep: FakeSleep) -> None:
        calls = 0

        async def op() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("refused")
            return "ok"

        await retry_with_backoff(op, STANDARD, sleep=fake_sleep, random_fn=lambda: 0.5)

        assert fake_sleep.delays == [pytest.approx(1.125)]
