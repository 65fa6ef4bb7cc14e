"""
OpenAI-compatible backend (OpenAI, LM Studio and generic compatible servers).
"""

from typing import Any, Dict

from pydantic import ValidationError

from ..exceptions import BackendResponseError
from ..schemas.llm import ChatRequest, LlmRequest, LlmResponse
from .base import BaseBackend

DEFAULT_MODEL = "gpt-3.5-turbo"


class OpenAIBackend(BaseBackend):
    """Talks the ``/chat/completions`` dialect with bearer authentication."""

    completions_path = "chat/completions"

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        api_key = self.config.secret()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        if self.config.organization_id:
            headers["OpenAI-Organization"] = self.config.organization_id
        return headers

    async def _probe(self, timeout: float) -> bool:
        response = await self._client.get("models", timeout=timeout)
        return response.is_success

    async def _complete(self, request: LlmRequest) -> LlmResponse:
        return await self._send(request)

    async def _chat(self, request: ChatRequest) -> LlmResponse:
        return await self._send(request)

    async def _send(self, request: LlmRequest) -> LlmResponse:
        data = await self._post_json(
            self.completions_path, self.build_payload(request), timeout=request.timeout_seconds
        )
        return self.parse_completion(data)

    def build_payload(self, request: LlmRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model_name or DEFAULT_MODEL,
            "messages": [m.model_dump() for m in self.build_messages(request)],
            "temperature": self.resolve_temperature(request),
        }

        # Only send optional parameters the caller actually set
        max_tokens = self.resolve_max_tokens(request)
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.frequency_penalty is not None:
            payload["frequency_penalty"] = request.frequency_penalty
        if request.presence_penalty is not None:
            payload["presence_penalty"] = request.presence_penalty
        if request.stop_sequences:
            payload["stop"] = request.stop_sequences
        return payload

    def parse_completion(self, data: Any) -> LlmResponse:
        try:
            choice = data["choices"][0]
            usage = data.get("usage") or {}
            return self.success_response(
                choice["message"]["content"] or "",
                model=data.get("model"),
                prompt_tokens=usage.get("prompt_tokens"),
                completion_tokens=usage.get("completion_tokens"),
                total_tokens=usage.get("total_tokens"),
                finish_reason=choice.get("finish_reason"),
            )
        except (KeyError, IndexError, TypeError, AttributeError, ValidationError):
            raise BackendResponseError("Malformed completion payload", backend=self.name) from None
