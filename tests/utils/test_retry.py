"""Tests for bounded retries with exponential backoff."""

from unittest.mock import AsyncMock

import pytest

from routine_planner.config import Settings
from routine_planner.exceptions import (
    LLMRateLimitError,
    LLMServiceUnavailableError,
    RoutineValidationError,
)
from routine_planner.utils.retry import RetryConfig, retry_async


class TestRetryConfig:
    """Tests for delay calculation."""

    def test_exponential_delays_are_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [config.get_delay(i) for i in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_from_settings(self):
        settings = Settings(oracle_max_attempts=5, oracle_base_delay=0.5, oracle_max_delay=2.0)
        config = RetryConfig.from_settings(settings)
        assert (config.max_attempts, config.base_delay, config.max_delay) == (5, 0.5, 2.0)


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        operation = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        assert await retry_async(operation, RetryConfig(), sleep=sleep) == "ok"
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_between_attempts(self):
        operation = AsyncMock(side_effect=[
            LLMServiceUnavailableError(),
            LLMServiceUnavailableError(),
            "ok",
        ])
        sleep = AsyncMock()

        result = await retry_async(operation, RetryConfig(max_attempts=3, base_delay=1.0), sleep=sleep)

        assert result == "ok"
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        errors = [LLMServiceUnavailableError(f"attempt {i}") for i in range(3)]
        operation = AsyncMock(side_effect=errors)

        with pytest.raises(LLMServiceUnavailableError) as exc_info:
            await retry_async(operation, RetryConfig(max_attempts=3), sleep=AsyncMock())

        assert exc_info.value is errors[-1]
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_validation_errors_are_not_retried(self):
        operation = AsyncMock(side_effect=RoutineValidationError())

        with pytest.raises(RoutineValidationError):
            await retry_async(operation, RetryConfig(max_attempts=3), sleep=AsyncMock())

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_uses_retry_after(self):
        operation = AsyncMock(side_effect=[LLMRateLimitError(retry_after=3.0), "ok"])
        sleep = AsyncMock()

        await retry_async(operation, RetryConfig(max_delay=8.0), sleep=sleep)

        sleep.assert_awaited_once_with(3.0)

    @pytest.mark.asyncio
    async def test_retry_after_is_capped(self):
        operation = AsyncMock(side_effect=[LLMRateLimitError(retry_after=60.0), "ok"])
        sleep = AsyncMock()

        await retry_async(operation, RetryConfig(max_delay=8.0), sleep=sleep)

        sleep.assert_awaited_once_with(8.0)
