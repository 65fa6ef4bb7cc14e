from .builder import (
    DEFAULT_TRANSLATION_SYSTEM_MESSAGE,
    DefaultPromptBuilder,
    PromptBuilder,
    PromptContext,
    TranslationPromptBuilder,
)
from .memory import ContextMemory, InMemoryContextMemory

__all__ = [
    "DEFAULT_TRANSLATION_SYSTEM_MESSAGE",
    "ContextMemory",
    "DefaultPromptBuilder",
    "InMemoryContextMemory",
    "PromptBuilder",
    "PromptContext",
    "TranslationPromptBuilder",
]
