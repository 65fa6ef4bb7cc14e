"""Tests for the retry handler."""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from llm_backend.config.settings import LlmSettings
from llm_backend.exceptions import BackendTransportError
from llm_backend.orchestrator.retry_handler import RetryHandler
from llm_backend.schemas.llm import LlmResponse


class TestRetryHandler:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=1000, sleep=sleep_recorder.sleep)
        func = AsyncMock(return_value="ok")

        assert await handler.execute(func, "arg", key="value") == "ok"
        func.assert_awaited_once_with("arg", key="value")
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_exponential_schedule(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=1000, exponential_backoff=True, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=BackendTransportError("refused", backend="A"))

        with pytest.raises(BackendTransportError):
            await handler.execute(func)

        assert func.await_count == 4
        assert sleep_recorder.delays == pytest.approx([1.0, 2.0, 4.0])

    @pytest.mark.asyncio
    async def test_fixed_schedule(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=1000, exponential_backoff=False, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=BackendTransportError("refused"))

        with pytest.raises(BackendTransportError):
            await handler.execute(func)

        assert sleep_recorder.delays == pytest.approx([1.0, 1.0, 1.0])

    @pytest.mark.asyncio
    async def test_recovers_after_transient_errors(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=100, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=[BackendTransportError("a"), BackendTransportError("b"), "ok"])

        assert await handler.execute(func) == "ok"
        assert func.await_count == 3
        assert sleep_recorder.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_last_exception_is_reraised(self, sleep_recorder):
        handler = RetryHandler(max_retries=1, retry_delay_ms=10, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=[ValueError("first"), ValueError("second")])

        with pytest.raises(ValueError, match="second"):
            await handler.execute(func)

    @pytest.mark.asyncio
    async def test_failed_response_is_not_retried(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=10, sleep=sleep_recorder.sleep)
        failed = LlmResponse(backend_used="A", success=False, error_message="HTTP 400")
        func = AsyncMock(return_value=failed)

        assert await handler.execute(func) is failed
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_zero_retries(self, sleep_recorder):
        handler = RetryHandler(max_retries=0, retry_delay_ms=10, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=BackendTransportError("down"))

        with pytest.raises(BackendTransportError):
            await handler.execute(func)
        func.assert_awaited_once()
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self, sleep_recorder):
        handler = RetryHandler(max_retries=3, retry_delay_ms=10, sleep=sleep_recorder.sleep)
        func = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await handler.execute(func)
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_during_delay_aborts_promptly(self):
        handler = RetryHandler(max_retries=3, retry_delay_ms=10_000)
        func = AsyncMock(side_effect=BackendTransportError("down"))

        task = asyncio.create_task(handler.execute(func))
        await asyncio.sleep(0.05)
        started = time.perf_counter()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert time.perf_counter() - started < 1.0
        func.assert_awaited_once()

    def test_delay_for(self):
        assert [RetryHandler(retry_delay_ms=1000).delay_for(n) for n in (1, 2, 3)] == [1000, 2000, 4000]
        fixed = RetryHandler(retry_delay_ms=1000, exponential_backoff=False)
        assert [fixed.delay_for(n) for n in (1, 2, 3)] == [1000, 1000, 1000]

    def test_from_settings(self):
        settings = LlmSettings(max_retries=5, retry_delay_ms=250, use_exponential_backoff=False)
        handler = RetryHandler.from_settings(settings)
        assert handler.max_retries == 5
        assert handler.retry_delay_ms == 250
        assert handler.exponential_backoff is False

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryHandler(max_retries=-1)

    def test_factories(self):
        assert RetryHandler.with_exponential_backoff(2, 500).exponential_backoff is True
        assert RetryHandler.with_fixed_backoff(2, 500).exponential_backoff is False
