"""
Anthropic Messages API backend.
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from ..exceptions import BackendResponseError
from ..schemas.llm import ChatRequest, LlmRequest, LlmResponse
from .base import BaseBackend

DEFAULT_MODEL = "claude-3-haiku-20240307"
ANTHROPIC_VERSION = "2023-06-01"
# The Messages API requires max_tokens
DEFAULT_MAX_TOKENS = 1024


class AnthropicBackend(BaseBackend):
    """Sends requests to ``v1/messages``.

    System messages are lifted out of the message list into the top-level
    ``system`` field.
    """

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        headers["anthropic-version"] = ANTHROPIC_VERSION
        api_key = self.config.secret()
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    async def _probe(self, timeout: float) -> bool:
        response = await self._client.get("v1/models", timeout=timeout)
        return response.is_success

    async def _complete(self, request: LlmRequest) -> LlmResponse:
        return await self._send(request)

    async def _chat(self, request: ChatRequest) -> LlmResponse:
        return await self._send(request)

    async def _send(self, request: LlmRequest) -> LlmResponse:
        system_parts: List[str] = []
        messages = []
        for message in self.build_messages(request):
            if message.role == "system":
                system_parts.append(message.content)
            else:
                messages.append({"role": message.role, "content": message.content})

        payload: Dict[str, Any] = {
            "model": self.model_name or DEFAULT_MODEL,
            "messages": messages,
            "max_tokens": self.resolve_max_tokens(request) or DEFAULT_MAX_TOKENS,
            "temperature": min(self.resolve_temperature(request), 1.0),
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.stop_sequences:
            payload["stop_sequences"] = request.stop_sequences

        data = await self._post_json("v1/messages", payload, timeout=request.timeout_seconds)

        try:
            content = "".join(
                block.get("text", "") for block in data["content"] if block.get("type") == "text"
            )
            usage = data.get("usage") or {}
            return self.success_response(
                content,
                model=data.get("model"),
                prompt_tokens=usage.get("input_tokens"),
                completion_tokens=usage.get("output_tokens"),
                finish_reason=data.get("stop_reason"),
            )
        except (KeyError, TypeError, AttributeError, ValidationError):
            raise BackendResponseError("Malformed messages payload", backend=self.name) from None
