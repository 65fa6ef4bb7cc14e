"""Pydantic models for requests, responses and health."""

from .llm import (
    BackendHealth,
    BackendStatistics,
    BackendType,
    ChatMessage,
    ChatRequest,
    LlmRequest,
    LlmResponse,
    SelectionStrategy,
)
from .translation import (
    BatchTranslationRequest,
    BatchTranslationResponse,
    TranslationRequest,
    TranslationResponse,
)

__all__ = [
    "BackendHealth",
    "BackendStatistics",
    "BackendType",
    "ChatMessage",
    "ChatRequest",
    "LlmRequest",
    "LlmResponse",
    "SelectionStrategy",
    "BatchTranslationRequest",
    "BatchTranslationResponse",
    "TranslationRequest",
    "TranslationResponse",
]
