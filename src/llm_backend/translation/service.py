"""Translation service: EasyNMT first, LLM chat as fallback."""

import asyncio
import time
from typing import Dict, List, Optional

import structlog

from ..backends.easynmt import EasyNMTBackend
from ..orchestrator.service import LlmService
from ..prompts.builder import PromptContext, TranslationPromptBuilder
from ..schemas.translation import (
    BatchTranslationRequest,
    BatchTranslationResponse,
    TranslationRequest,
    TranslationResponse,
)

logger = structlog.get_logger()

EASYNMT_LABEL = "EasyNMT"


class TranslationService:
    """Translate text with a dedicated NMT backend when one is reachable.

    Falls back to a chat completion through the :class:`LlmService` using a
    translation prompt.
    """

    def __init__(
        self,
        llm_service: LlmService,
        prompt_builder: Optional[TranslationPromptBuilder] = None,
        easynmt_backend: Optional[EasyNMTBackend] = None,
    ):
        self.llm_service = llm_service
        self.prompt_builder = prompt_builder or TranslationPromptBuilder()
        self.easynmt_backend = easynmt_backend or next(
            (b for b in llm_service.backends if isinstance(b, EasyNMTBackend) and b.enabled), None
        )

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        start = time.perf_counter()

        if self._use_easynmt(request):
            response = await self._translate_with_easynmt(request, start)
            if response is not None:
                return response

        logger.debug(
            "Translating with LLM",
            source_language=request.source_language,
            target_language=request.target_language,
        )
        context = PromptContext(
            context_variables={
                "SourceLanguage": request.source_language,
                "TargetLanguage": request.target_language,
                "PreserveFormatting": str(request.preserve_formatting).lower(),
            }
        )
        if request.context:
            context.context_variables["Context"] = request.context

        chat_request = self.prompt_builder.build_chat_request(request.text, context).model_copy(
            update={
                "temperature": self.llm_service.settings.default_temperature,
                "preferred_backend": request.preferred_backend,
            }
        )
        llm_response = await self.llm_service.chat(chat_request)

        return TranslationResponse(
            translated_text=llm_response.content if llm_response.success else "",
            source_language=request.source_language,
            target_language=request.target_language,
            backend_used=llm_response.backend_used,
            success=llm_response.success,
            error_message=llm_response.error_message,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def translate_batch(self, request: BatchTranslationRequest) -> BatchTranslationResponse:
        """Translate many strings with at most ``max_concurrency`` in flight."""
        start = time.perf_counter()
        semaphore = asyncio.Semaphore(request.max_concurrency)

        async def run(item: TranslationRequest) -> TranslationResponse:
            async with semaphore:
                return await self.translate(item)

        responses = await asyncio.gather(*(run(item) for item in request.requests))
        success_count = sum(1 for r in responses if r.success)
        return BatchTranslationResponse(
            responses=list(responses),
            success_count=success_count,
            failure_count=len(responses) - success_count,
            total_duration_ms=(time.perf_counter() - start) * 1000,
        )

    def list_backends(self) -> List[str]:
        names = list(self.llm_service.list_backend_names())
        if self.easynmt_backend is not None:
            names.insert(0, f"{EASYNMT_LABEL} (Priority)")
        return names

    async def test_backends(self) -> Dict[str, bool]:
        results: Dict[str, bool] = {}
        if self.easynmt_backend is not None:
            results[EASYNMT_LABEL] = await self.easynmt_backend.is_available()
        health = await self.llm_service.test_all_backends()
        for name, status in health.items():
            results[name] = status.is_healthy
        return results

    def _use_easynmt(self, request: TranslationRequest) -> bool:
        if self.easynmt_backend is None:
            return False
        if request.preferred_backend:
            return request.preferred_backend.casefold() == self.easynmt_backend.name.casefold()
        return True

    async def _translate_with_easynmt(
        self, request: TranslationRequest, start: float
    ) -> Optional[TranslationResponse]:
        backend = self.easynmt_backend
        try:
            if not await backend.is_available():
                logger.info("EasyNMT unavailable, falling back to LLM", backend=backend.name)
                return None
            response = await backend.translate(
                request.text, request.target_language, source_language=request.source_language
            )
        except Exception as e:
            logger.warning("EasyNMT failed, falling back to LLM", backend=backend.name, error=str(e))
            return None

        if not response.success:
            logger.warning(
                "EasyNMT translation failed, falling back to LLM",
                backend=backend.name,
                error=response.error_message,
            )
            return None

        return TranslationResponse(
            translated_text=response.content,
            source_language=request.source_language,
            target_language=request.target_language,
            backend_used=EASYNMT_LABEL,
            success=True,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
