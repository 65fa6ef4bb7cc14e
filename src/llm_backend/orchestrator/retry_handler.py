"""Retry handler with fixed or exponential backoff."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

logger = structlog.get_logger()

T = TypeVar("T")


class RetryHandler:
    """Bounded retries around a single backend call.

    Attempt 0 runs immediately. After a raised exception the handler waits
    ``retry_delay_ms`` (fixed) or ``retry_delay_ms * 2**(n-1)`` before retry
    ``n``, and re-raises the last exception once ``max_retries`` retries are
    spent. Returned values are never retried, including failed responses.
    Cancellation interrupts the wait and is not retried.
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay_ms: float = 1000,
        exponential_backoff: bool = True,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """Initialize retry handler."""
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.exponential_backoff = exponential_backoff
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(cls, settings, sleep=None) -> "RetryHandler":
        return cls(
            max_retries=settings.max_retries,
            retry_delay_ms=settings.retry_delay_ms,
            exponential_backoff=settings.use_exponential_backoff,
            sleep=sleep,
        )

    def delay_for(self, retry_number: int) -> float:
        """Delay in milliseconds before retry ``retry_number`` (1-based)."""
        if self.exponential_backoff:
            return self.retry_delay_ms * 2 ** (retry_number - 1)
        return self.retry_delay_ms

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args,
        operation: str = "backend_call",
        **kwargs,
    ) -> T:
        """Execute ``func`` with retry logic."""
        delay_s = self.retry_delay_ms / 1000
        wait_strategy = wait_exponential(multiplier=delay_s) if self.exponential_backoff else wait_fixed(delay_s)

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Retrying after failure",
                operation=operation,
                retry=retry_state.attempt_number,
                max_retries=self.max_retries,
                delay_ms=round(retry_state.next_action.sleep * 1000) if retry_state.next_action else None,
                error=str(error),
            )

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_strategy,
            retry=retry_if_exception_type(Exception),
            before_sleep=log_retry,
            sleep=self._sleep,
            reraise=True,
        ):
            with attempt:
                return await func(*args, **kwargs)

        # This should never be reached
        raise RuntimeError("Retry loop completed without returning")

    @staticmethod
    def with_exponential_backoff(max_retries: int = 3, base_delay_ms: float = 1000) -> "RetryHandler":
        return RetryHandler(max_retries=max_retries, retry_delay_ms=base_delay_ms, exponential_backoff=True)

    @staticmethod
    def with_fixed_backoff(max_retries: int = 3, delay_ms: float = 1000) -> "RetryHandler":
        return RetryHandler(max_retries=max_retries, retry_delay_ms=delay_ms, exponential_backoff=False)
