"""
Ollama backend using the native ``/api/chat`` endpoint.
"""

from typing import Any, Dict

from pydantic import ValidationError

from ..exceptions import BackendResponseError
from ..schemas.llm import ChatRequest, LlmRequest, LlmResponse
from .base import BaseBackend

DEFAULT_MODEL = "llama3"


class OllamaBackend(BaseBackend):
    async def _probe(self, timeout: float) -> bool:
        response = await self._client.get("api/tags", timeout=timeout)
        return response.is_success

    async def _complete(self, request: LlmRequest) -> LlmResponse:
        return await self._send(request)

    async def _chat(self, request: ChatRequest) -> LlmResponse:
        return await self._send(request)

    async def _send(self, request: LlmRequest) -> LlmResponse:
        options: Dict[str, Any] = {"temperature": self.resolve_temperature(request)}
        max_tokens = self.resolve_max_tokens(request)
        if max_tokens:
            options["num_predict"] = max_tokens
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.frequency_penalty is not None:
            options["frequency_penalty"] = request.frequency_penalty
        if request.presence_penalty is not None:
            options["presence_penalty"] = request.presence_penalty
        if request.stop_sequences:
            options["stop"] = request.stop_sequences

        payload = {
            "model": self.model_name or DEFAULT_MODEL,
            "messages": [m.model_dump() for m in self.build_messages(request)],
            "stream": False,
            "options": options,
        }
        data = await self._post_json("api/chat", payload, timeout=request.timeout_seconds)

        try:
            return self.success_response(
                data["message"]["content"],
                model=data.get("model"),
                prompt_tokens=data.get("prompt_eval_count"),
                completion_tokens=data.get("eval_count"),
                finish_reason=data.get("done_reason"),
            )
        except (KeyError, TypeError, AttributeError, ValidationError):
            raise BackendResponseError("Malformed chat payload", backend=self.name) from None
