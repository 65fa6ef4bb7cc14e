"""Prompt builders turning a user message plus context into requests."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..schemas.llm import ChatMessage, ChatRequest
from .memory import ContextMemory, InMemoryContextMemory

DEFAULT_TRANSLATION_SYSTEM_MESSAGE = (
    "You are a professional translator. Provide accurate translations while "
    "preserving formatting, placeholders, and technical terms."
)


class PromptContext(BaseModel):
    """Optional context applied while building a prompt."""

    system_message: Optional[str] = None
    context_variables: Dict[str, str] = Field(default_factory=dict)
    examples: List[Tuple[str, str]] = Field(default_factory=list, description="Few-shot (input, output) pairs")
    max_memory_messages: int = Field(default=10, ge=0)
    include_history: bool = True
    template_variables: Dict[str, str] = Field(default_factory=dict)


def apply_template(message: str, variables: Dict[str, str]) -> str:
    """Replace ``{{key}}`` placeholders."""
    for key, value in variables.items():
        message = message.replace("{{" + key + "}}", value)
    return message


class PromptBuilder(ABC):
    """Base class owning the conversation memory."""

    def __init__(self, memory: Optional[ContextMemory] = None):
        self.memory = memory or InMemoryContextMemory()

    @abstractmethod
    def build_prompt(self, user_message: str, context: Optional[PromptContext] = None) -> str: ...

    @abstractmethod
    def build_chat_request(self, user_message: str, context: Optional[PromptContext] = None) -> ChatRequest: ...

    def add_to_memory(self, role: str, content: str) -> None:
        self.memory.add_message(ChatMessage(role=role, content=content))

    def clear_memory(self) -> None:
        self.memory.clear()

    def get_memory(self) -> List[ChatMessage]:
        return self.memory.get_all_messages()


class DefaultPromptBuilder(PromptBuilder):
    def build_prompt(self, user_message: str, context: Optional[PromptContext] = None) -> str:
        """Flatten everything into one text prompt with labelled sections."""
        context = context or PromptContext(include_history=False)
        lines: List[str] = []

        if context.system_message:
            lines += [context.system_message, ""]

        if context.examples:
            lines.append("Examples:")
            for example_input, example_output in context.examples:
                lines += [f"Input: {example_input}", f"Output: {example_output}", ""]

        if context.context_variables:
            lines.append("Context:")
            lines += [f"{key}: {value}" for key, value in context.context_variables.items()]
            lines.append("")

        if context.include_history:
            history = self.memory.get_recent_messages(context.max_memory_messages)
            if history:
                lines.append("Previous conversation:")
                lines += [f"{m.role}: {m.content}" for m in history]
                lines.append("")

        lines.append(apply_template(user_message, context.template_variables))
        return "\n".join(lines).strip()

    def build_chat_request(self, user_message: str, context: Optional[PromptContext] = None) -> ChatRequest:
        """Build ``system, few-shot pairs, history, user`` messages."""
        context = context or PromptContext(include_history=False)
        messages: List[ChatMessage] = []

        if context.system_message:
            messages.append(ChatMessage.system(context.system_message))

        for example_input, example_output in context.examples:
            messages.append(ChatMessage.user(example_input))
            messages.append(ChatMessage.assistant(example_output))

        if context.include_history:
            messages.extend(self.memory.get_recent_messages(context.max_memory_messages))

        final_message = apply_template(user_message, context.template_variables)
        if context.context_variables:
            context_info = "\n".join(f"{k}: {v}" for k, v in context.context_variables.items())
            final_message = f"{context_info}\n\n{final_message}"

        messages.append(ChatMessage.user(final_message))
        return ChatRequest(
            prompt=final_message,
            system_message=context.system_message,
            messages=messages,
        )


class TranslationPromptBuilder(PromptBuilder):
    """Builds translation instructions.

    Reads ``SourceLanguage``, ``TargetLanguage``, ``PreserveFormatting`` and
    ``Context`` from the context variables.
    """

    def build_prompt(self, user_message: str, context: Optional[PromptContext] = None) -> str:
        variables = context.context_variables if context else {}
        source = variables.get("SourceLanguage", "auto")
        target = variables.get("TargetLanguage", "en")
        preserve = variables.get("PreserveFormatting", "true").lower() == "true"

        lines = [f"Translate the following text from {source} to {target}."]
        if preserve:
            lines.append(
                "IMPORTANT: Preserve any placeholders like {0}, {1}, {{variable}}, %s, %d, etc. "
                "exactly as they appear."
            )
            lines.append("Do not translate or modify placeholders, variable names, or format specifiers.")
        if variables.get("Context"):
            lines.append(f"\nContext: {variables['Context']}")
        lines.append("\nText to translate:")
        lines.append(user_message)
        lines.append("\nProvide ONLY the translation without any explanations or notes.")
        return "\n".join(lines) + "\n"

    def build_chat_request(self, user_message: str, context: Optional[PromptContext] = None) -> ChatRequest:
        system_message = (context.system_message if context else None) or DEFAULT_TRANSLATION_SYSTEM_MESSAGE
        prompt = self.build_prompt(user_message, context)
        return ChatRequest(
            prompt=prompt,
            system_message=system_message,
            messages=[ChatMessage.system(system_message), ChatMessage.user(prompt)],
        )
