"""
Base backend abstract class shared by every remote adapter.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from ..config.settings import BackendConfig
from ..exceptions import BackendResponseError, BackendTransportError
from ..schemas.llm import BackendHealth, ChatMessage, ChatRequest, LlmRequest, LlmResponse
from .metrics import BackendMetrics

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=LlmRequest)

DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_TEMPERATURE = 0.7
PROBE_TIMEOUT_SECONDS = 5.0


class BaseBackend(ABC):
    """Abstract base class for backend adapters.

    An adapter owns one HTTP client for one remote service and keeps its own
    latency and outcome metrics. Business failures (non-2xx, unreadable
    payloads) come back as ``LlmResponse(success=False)``; network failures
    raise :class:`BackendTransportError` so the caller can retry them.
    """

    def __init__(
        self,
        config: BackendConfig,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        default_temperature: float = DEFAULT_TEMPERATURE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the backend.

        Args:
            config: Backend connection settings
            timeout_seconds: Shared timeout used when the config has no override
            default_temperature: Sampling temperature used when neither the
                request nor the config sets one
            transport: Optional httpx transport, used by tests to fake the remote
        """
        self.config = config
        self.default_temperature = default_temperature
        self.metrics = BackendMetrics()

        headers = dict(self._default_headers())
        headers.update(config.additional_headers)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds or timeout_seconds,
            headers=headers,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def model_name(self) -> Optional[str]:
        return self.config.model_name

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def priority(self) -> int:
        return self.config.priority

    def _default_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @abstractmethod
    async def _probe(self, timeout: float) -> bool:
        """Cheap reachability check. May raise httpx errors."""

    @abstractmethod
    async def _complete(self, request: LlmRequest) -> LlmResponse:
        """Send a single-shot completion."""

    @abstractmethod
    async def _chat(self, request: ChatRequest) -> LlmResponse:
        """Send a conversational completion."""

    async def is_available(self, timeout: Optional[float] = None) -> bool:
        """Probe the remote service. Never raises for remote failures."""
        try:
            return await self._probe(timeout or PROBE_TIMEOUT_SECONDS)
        except Exception as e:
            logger.debug("Backend %s probe failed: %s", self.name, e)
            return False

    async def complete(self, request: LlmRequest) -> LlmResponse:
        return await self._execute(self._complete, request)

    async def chat(self, request: ChatRequest) -> LlmResponse:
        return await self._execute(self._chat, request)

    async def health(self) -> BackendHealth:
        available = await self.is_available()
        snapshot = self.metrics.snapshot()
        return BackendHealth(
            backend_name=self.name,
            backend_type=self.config.type,
            model_name=self.model_name,
            is_healthy=available,
            average_latency_ms=snapshot.average_latency_ms,
            success_count=snapshot.success_count,
            failure_count=snapshot.failure_count,
            last_error=snapshot.last_error,
            last_successful_request=snapshot.last_successful_request,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _execute(
        self, call: Callable[[RequestT], Awaitable[LlmResponse]], request: RequestT
    ) -> LlmResponse:
        start = time.perf_counter()
        try:
            response = await call(request)
        except httpx.TransportError as e:
            message = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            self.metrics.record_failure(message)
            self._log_error(message)
            raise BackendTransportError(message, backend=self.name) from e
        except BackendResponseError as e:
            response = self.error_response(e.message)
        except Exception as e:
            self.metrics.record_failure(str(e))
            self._log_error(str(e))
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response = response.model_copy(update={"duration_ms": duration_ms})
        if response.success:
            self.metrics.record_success(duration_ms)
            logger.debug("Backend %s responded in %.1f ms", self.name, duration_ms)
        else:
            self.metrics.record_failure(response.error_message or "Unknown error")
            self._log_error(response.error_message)
        return response

    async def _post_json(
        self, path: str, payload: Dict[str, Any], timeout: Optional[float] = None, **kwargs
    ) -> Any:
        """POST a JSON body and return the decoded JSON answer.

        Raises:
            BackendResponseError: non-2xx status or a body that is not JSON
            httpx.TransportError: network failure or timeout
        """
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self._client.post(path, json=payload, **kwargs)
        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError:
            raise BackendResponseError(
                "Response body is not valid JSON", backend=self.name, status_code=response.status_code
            ) from None

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = f"HTTP {response.status_code}"
        if response.text:
            message += f": {response.text[:200]}"
        raise BackendResponseError(
            message,
            backend=self.name,
            status_code=response.status_code,
        )

    def resolve_temperature(self, request: LlmRequest) -> float:
        if request.temperature is not None:
            return request.temperature
        if self.config.temperature is not None:
            return self.config.temperature
        return self.default_temperature

    def resolve_max_tokens(self, request: LlmRequest) -> Optional[int]:
        return request.max_tokens or self.config.max_output_tokens

    def build_messages(self, request: LlmRequest) -> List[ChatMessage]:
        """Flatten a request into the message list most chat APIs expect."""
        if isinstance(request, ChatRequest):
            messages = list(request.messages)
            if request.system_message and not any(m.role == "system" for m in messages):
                messages.insert(0, ChatMessage.system(request.system_message))
            return messages

        messages = []
        if request.system_message:
            messages.append(ChatMessage.system(request.system_message))
        messages.append(ChatMessage.user(request.prompt))
        return messages

    def success_response(
        self,
        content: str,
        model: Optional[str] = None,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
        finish_reason: Optional[str] = None,
    ) -> LlmResponse:
        if total_tokens is None and prompt_tokens is not None and completion_tokens is not None:
            total_tokens = prompt_tokens + completion_tokens
        return LlmResponse(
            content=content,
            backend_used=self.name,
            model_used=model or self.model_name,
            success=True,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            finish_reason=finish_reason,
        )

    def error_response(self, message: str) -> LlmResponse:
        return LlmResponse(
            backend_used=self.name,
            model_used=self.model_name,
            success=False,
            error_message=message,
        )

    def _log_error(self, message: Optional[str]) -> None:
        logger.warning("Backend %s failed: %s", self.name, message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
