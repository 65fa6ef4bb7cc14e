"""
EasyNMT machine-translation backend.
"""

import json
import logging
from typing import Any, List, Optional, Tuple

import httpx

from ..schemas.llm import ChatRequest, LlmRequest, LlmResponse
from .base import BaseBackend

logger = logging.getLogger(__name__)

MODEL_LABEL = "EasyNMT"
SOURCE_LANGUAGE_KEY = "source_language"
TARGET_LANGUAGE_KEY = "target_language"


class EasyNMTBackend(BaseBackend):
    """Translation-only backend.

    The prompt is the text to translate. Languages come from the request
    metadata (``source_language``/``target_language``), defaulting to
    ``auto`` and ``en``.
    """

    async def _probe(self, timeout: float) -> bool:
        response = await self._client.get("model_name", timeout=timeout)
        return response.is_success

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        timeout_seconds: Optional[float] = None,
    ) -> LlmResponse:
        request = LlmRequest(
            prompt=text,
            timeout_seconds=timeout_seconds,
            metadata={SOURCE_LANGUAGE_KEY: source_language, TARGET_LANGUAGE_KEY: target_language},
        )
        return await self.complete(request)

    async def language_pairs(self) -> List[Tuple[str, str]]:
        """Return the (source, target) pairs the server supports, or [] on error."""
        try:
            response = await self._client.get("lang_pairs")
            if not response.is_success:
                return []
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Backend %s failed to list language pairs: %s", self.name, e)
            return []

        pairs = []
        for item in data if isinstance(data, list) else []:
            if isinstance(item, (list, tuple)) and len(item) == 2:
                pairs.append((str(item[0]), str(item[1])))
        return pairs

    async def _complete(self, request: LlmRequest) -> LlmResponse:
        source = request.metadata.get(SOURCE_LANGUAGE_KEY) or "auto"
        target = request.metadata.get(TARGET_LANGUAGE_KEY) or "en"
        return await self._translate(request.prompt, source, target, request.timeout_seconds)

    async def _chat(self, request: ChatRequest) -> LlmResponse:
        last_user = request.last_user_message()
        if last_user is None:
            return self.error_response("No user message found in chat request")
        source = request.metadata.get(SOURCE_LANGUAGE_KEY) or "auto"
        target = request.metadata.get(TARGET_LANGUAGE_KEY) or "en"
        return await self._translate(last_user.content, source, target, request.timeout_seconds)

    async def _translate(
        self, text: str, source: str, target: str, timeout: Optional[float]
    ) -> LlmResponse:
        kwargs = {"timeout": timeout} if timeout is not None else {}
        body = {
            "text": text,
            "source_lang": source,
            "target_lang": target,
            "beam_size": 5,
            "perform_sentence_splitting": True,
        }
        response = await self._client.post("translate", json=body, **kwargs)
        if not response.is_success:
            logger.debug("Backend %s POST translate returned %s, retrying with GET", self.name, response.status_code)
            return await self._translate_via_get(text, source, target, kwargs)

        translated = _extract_translation(response.text)
        return self.success_response(text if translated is None else translated, model=MODEL_LABEL)

    async def _translate_via_get(self, text: str, source: str, target: str, kwargs) -> LlmResponse:
        params = {"text": text, "target_lang": target, "source_lang": source}
        response = await self._client.get("translate", params=params, **kwargs)
        self._raise_for_status(response)

        translated = _extract_translation(response.text)
        if translated is None:
            translated = response.text.strip().strip('"')
        return self.success_response(translated, model=MODEL_LABEL)


def _extract_translation(raw: str) -> Optional[str]:
    """Pull the translated text out of the shapes EasyNMT servers return."""
    try:
        data: Any = json.loads(raw)
    except ValueError:
        return None

    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("translation"), str):
            return data["translation"]
        translated = data.get("translated")
        if isinstance(translated, list):
            return " ".join(str(t) for t in translated)
        if isinstance(translated, str):
            return translated
    return None
