"""LLM service orchestrating selection, retry and failover across backends."""

import asyncio
import time
from typing import Dict, List, Optional, Sequence

import structlog

from ..backends.base import BaseBackend
from ..backends.factory import BackendFactory
from ..config import get_settings
from ..config.settings import LlmSettings
from ..exceptions import ConfigurationError, LlmBackendError
from ..schemas.llm import (
    BackendHealth,
    BackendStatistics,
    ChatRequest,
    LlmRequest,
    LlmResponse,
    SelectionStrategy,
)
from ..telemetry.logger import RequestContext
from .retry_handler import RetryHandler
from .router import BackendRouter
from .statistics import StatisticsRegistry

logger = structlog.get_logger()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class LlmService:
    """Caller-facing entry point.

    For each call the router produces an ordered candidate list; each
    candidate is invoked through the retry handler. A successful response is
    returned at once. Under ``FAILOVER`` any failure moves on to the next
    candidate and an exhausted list yields ``LlmResponse.all_failed()``.
    Under the other strategies the first failure ends the call: a failed
    response or backend error comes back as a failed response, and an
    unexpected exception propagates.
    """

    def __init__(
        self,
        settings: Optional[LlmSettings] = None,
        backends: Optional[Sequence[BaseBackend]] = None,
        statistics: Optional[StatisticsRegistry] = None,
        router: Optional[BackendRouter] = None,
        retry_handler: Optional[RetryHandler] = None,
    ):
        self.settings = settings or get_settings()
        if backends is None:
            backends = BackendFactory(self.settings).create_backends()
        self._backends = list(backends)

        seen = set()
        for backend in self._backends:
            key = backend.name.casefold()
            if key in seen:
                raise ConfigurationError(f"Duplicate backend name: {backend.name}", backend=backend.name)
            seen.add(key)

        self.statistics = statistics or StatisticsRegistry()
        for backend in self._backends:
            self.statistics.register(backend.name)

        self.router = router or BackendRouter(
            self._backends,
            self.statistics,
            strategy=self.settings.strategy,
            specific_backend=self.settings.specific_backend,
        )
        self.retry_handler = retry_handler or RetryHandler.from_settings(self.settings)

        logger.info(
            "LLM service initialized",
            backends=[b.name for b in self._backends],
            strategy=self.router.strategy.value,
        )

    @property
    def backends(self) -> List[BaseBackend]:
        return list(self._backends)

    async def complete(self, request: LlmRequest) -> LlmResponse:
        return await self._orchestrate(request, chat=False)

    async def chat(self, request: ChatRequest) -> LlmResponse:
        return await self._orchestrate(request, chat=True)

    async def complete_or_chat(self, request: LlmRequest) -> LlmResponse:
        """Dispatch on the request shape."""
        if isinstance(request, ChatRequest):
            return await self.chat(request)
        return await self.complete(request)

    def list_backend_names(self) -> List[str]:
        return [b.name for b in self._backends]

    def get_backend(self, name: str) -> Optional[BaseBackend]:
        return self.router.find(name)

    def get_statistics(self) -> Dict[str, BackendStatistics]:
        return self.statistics.snapshot()

    async def test_all_backends(self) -> Dict[str, BackendHealth]:
        """Probe every backend concurrently."""
        results = await asyncio.gather(
            *(backend.health() for backend in self._backends), return_exceptions=True
        )

        health: Dict[str, BackendHealth] = {}
        for backend, result in zip(self._backends, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Backend health check failed", backend=backend.name, error=str(result))
                result = BackendHealth(
                    backend_name=backend.name,
                    backend_type=backend.config.type,
                    model_name=backend.model_name,
                    is_healthy=False,
                    last_error=str(result),
                )
            health[backend.name] = result
        return health

    async def aclose(self) -> None:
        await asyncio.gather(*(backend.aclose() for backend in self._backends))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _orchestrate(self, request: LlmRequest, chat: bool) -> LlmResponse:
        with RequestContext():
            start = time.perf_counter()
            candidates = self.router.select(request.preferred_backend)
            if not candidates:
                logger.warning("No backend candidates", preferred_backend=request.preferred_backend)
                return LlmResponse.all_failed(_elapsed_ms(start))

            failover = self.router.strategy == SelectionStrategy.FAILOVER
            for backend in candidates:
                response = await self._attempt(backend, request, chat, failover)
                if response is None:
                    continue
                if response.success or not failover:
                    return response

            logger.error("All backends failed", attempted=[b.name for b in candidates])
            return LlmResponse.all_failed(_elapsed_ms(start))

    async def _attempt(
        self, backend: BaseBackend, request: LlmRequest, chat: bool, failover: bool
    ) -> Optional[LlmResponse]:
        """Run one candidate through the retry handler and record the outcome.

        Returns ``None`` when an unexpected exception was recorded under
        failover and the next candidate should be tried.
        """
        call = backend.chat if chat else backend.complete
        operation = "chat" if chat else "complete"
        start = time.perf_counter()
        try:
            response = await self.retry_handler.execute(
                call, request, operation=f"{backend.name}.{operation}"
            )
        except LlmBackendError as e:
            self.statistics.record_failure(backend.name, e.message)
            logger.warning("Backend exhausted retries", backend=backend.name, error=e.message)
            return LlmResponse(
                backend_used=backend.name,
                model_used=backend.model_name,
                success=False,
                error_message=e.message,
                duration_ms=_elapsed_ms(start),
            )
        except Exception as e:
            self.statistics.record_failure(backend.name, str(e))
            logger.error("Backend raised unexpected error", backend=backend.name, error=str(e), exc_info=True)
            if failover:
                return None
            raise

        if response.success:
            self.statistics.record_success(backend.name, response.duration_ms)
            logger.info("Backend succeeded", backend=backend.name, duration_ms=round(response.duration_ms, 1))
        else:
            self.statistics.record_failure(backend.name, response.error_message, response.duration_ms)
            logger.warning("Backend returned failure", backend=backend.name, error=response.error_message)
        return response
