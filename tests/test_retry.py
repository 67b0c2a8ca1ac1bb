# =============================================================================
# tests/test_retry.py - Retry Loop Tests
# =============================================================================

from unittest.mock import AsyncMock, call

import pytest

from lib.retry import exponential_delay, fixed_delay, retry_async


def scripted(*values):
    """Operation returning the given values in order."""
    return AsyncMock(side_effect=list(values))


class TestDelayStrategies:

    def test_fixed(self):
        strategy = fixed_delay(1.5)
        assert [strategy(n) for n in (1, 2, 3)] == [1.5, 1.5, 1.5]

    def test_exponential(self):
        strategy = exponential_delay(1.0)
        assert [strategy(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_exponential_cap(self):
        strategy = exponential_delay(1.0, factor=3.0, max_delay=5.0)
        assert [strategy(n) for n in (1, 2, 3)] == [1.0, 3.0, 5.0]


class TestRetryAsync:

    @pytest.mark.asyncio
    async def test_first_attempt_accepted(self, no_sleep):
        operation = scripted("ok")
        outcome = await retry_async(operation, max_attempts=3, delay=fixed_delay(1), sleep=no_sleep)

        assert outcome.accepted
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert outcome.retries == 0
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_until_acceptable(self, no_sleep):
        operation = scripted(None, "", "done")
        outcome = await retry_async(
            operation,
            max_attempts=3,
            delay=exponential_delay(1.0),
            is_acceptable=bool,
            sleep=no_sleep,
        )

        assert outcome.accepted
        assert outcome.value == "done"
        assert outcome.retries == 2
        assert no_sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, no_sleep):
        operation = scripted(None, None, None, "too late")
        outcome = await retry_async(operation, max_attempts=3, delay=fixed_delay(1.0), sleep=no_sleep)

        assert not outcome.accepted
        assert outcome.value is None
        assert outcome.attempts == 3
        assert operation.await_count == 3
        # No wait after the last attempt
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_exceptions_propagate(self, no_sleep):
        operation = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await retry_async(operation, max_attempts=3, delay=fixed_delay(1.0), sleep=no_sleep)
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_max_attempts(self, no_sleep):
        with pytest.raises(ValueError):
            await retry_async(scripted("x"), max_attempts=0, delay=fixed_delay(1.0), sleep=no_sleep)
