"""Tests for prompt builders and conversation memory."""

import pytest

from llm_backend.prompts.builder import (
    DEFAULT_TRANSLATION_SYSTEM_MESSAGE,
    DefaultPromptBuilder,
    PromptContext,
    TranslationPromptBuilder,
)
from llm_backend.prompts.memory import InMemoryContextMemory
from llm_backend.schemas.llm import ChatMessage


class TestInMemoryContextMemory:
    def test_recent_messages(self):
        memory = InMemoryContextMemory()
        for i in range(15):
            memory.add_message(ChatMessage.user(f"m{i}"))
        recent = memory.get_recent_messages(3)
        assert [m.content for m in recent] == ["m12", "m13", "m14"]
        assert len(memory.get_recent_messages()) == 10
        assert memory.get_recent_messages(0) == []

    def test_token_estimate(self):
        memory = InMemoryContextMemory()
        memory.add_message(ChatMessage.user("a" * 40))
        memory.add_message(ChatMessage.assistant("b" * 9))
        assert memory.estimate_token_count() == 12

    def test_trim_keeps_system_messages(self):
        memory = InMemoryContextMemory()
        memory.add_message(ChatMessage.system("s" * 40))
        for i in range(5):
            memory.add_message(ChatMessage.user(str(i) * 40))

        memory.trim_to_token_limit(25)

        contents = [m.content for m in memory.get_all_messages()]
        assert contents == ["s" * 40, "4" * 40]
        assert memory.estimate_token_count() == 20

    def test_trim_leaves_at_least_one_message(self):
        memory = InMemoryContextMemory()
        memory.add_message(ChatMessage.user("x" * 400))
        memory.trim_to_token_limit(1)
        assert len(memory) == 1

    def test_clear(self):
        memory = InMemoryContextMemory()
        memory.add_message(ChatMessage.user("x"))
        memory.clear()
        assert memory.get_all_messages() == []

    @pytest.mark.asyncio
    async def test_save_and_load_are_noops(self):
        memory = InMemoryContextMemory()
        memory.add_message(ChatMessage.user("x"))
        await memory.save("session")
        await memory.load("session")
        assert len(memory) == 1


class TestDefaultPromptBuilder:
    def test_build_prompt_sections(self):
        builder = DefaultPromptBuilder()
        builder.add_to_memory("user", "earlier question")
        context = PromptContext(
            system_message="You are helpful.",
            examples=[("2+2", "4")],
            context_variables={"Project": "demo"},
            template_variables={"name": "Ada"},
        )

        prompt = builder.build_prompt("Hello {{name}}", context)

        assert prompt == (
            "You are helpful.\n\n"
            "Examples:\nInput: 2+2\nOutput: 4\n\n"
            "Context:\nProject: demo\n\n"
            "Previous conversation:\nuser: earlier question\n\n"
            "Hello Ada"
        )

    def test_build_prompt_without_context(self):
        builder = DefaultPromptBuilder()
        builder.add_to_memory("user", "ignored")
        assert builder.build_prompt("Just this") == "Just this"

    def test_build_chat_request(self):
        builder = DefaultPromptBuilder()
        builder.add_to_memory("user", "q1")
        builder.add_to_memory("assistant", "a1")
        context = PromptContext(
            system_message="sys",
            examples=[("in", "out")],
            context_variables={"Tone": "formal"},
            template_variables={"thing": "report"},
            max_memory_messages=1,
        )

        request = builder.build_chat_request("Write the {{thing}}", context)

        roles = [m.role for m in request.messages]
        assert roles == ["system", "user", "assistant", "assistant", "user"]
        assert request.messages[3].content == "a1"
        assert request.messages[-1].content == "Tone: formal\n\nWrite the report"
        assert request.prompt == "Tone: formal\n\nWrite the report"
        assert request.system_message == "sys"

    def test_history_can_be_disabled(self):
        builder = DefaultPromptBuilder()
        builder.add_to_memory("user", "old")
        request = builder.build_chat_request("new", PromptContext(include_history=False))
        assert [m.content for m in request.messages] == ["new"]

    def test_memory_management(self):
        builder = DefaultPromptBuilder()
        builder.add_to_memory("user", "x")
        assert [m.content for m in builder.get_memory()] == ["x"]
        builder.clear_memory()
        assert builder.get_memory() == []


class TestTranslationPromptBuilder:
    def test_prompt_contains_languages_and_rules(self):
        context = PromptContext(
            context_variables={"SourceLanguage": "en", "TargetLanguage": "de", "Context": "Button label"}
        )
        prompt = TranslationPromptBuilder().build_prompt("Save {0}", context)

        assert "from en to de" in prompt
        assert "Preserve any placeholders" in prompt
        assert "Context: Button label" in prompt
        assert "Text to translate:\nSave {0}" in prompt
        assert prompt.rstrip().endswith("without any explanations or notes.")

    def test_formatting_rules_optional(self):
        context = PromptContext(context_variables={"PreserveFormatting": "false"})
        prompt = TranslationPromptBuilder().build_prompt("Hi", context)
        assert "from auto to en" in prompt
        assert "placeholders" not in prompt

    def test_chat_request_uses_default_system_message(self):
        request = TranslationPromptBuilder().build_chat_request("Hi")
        assert request.system_message == DEFAULT_TRANSLATION_SYSTEM_MESSAGE
        assert [m.role for m in request.messages] == ["system", "user"]
        assert request.messages[1].content == request.prompt

    def test_chat_request_custom_system_message(self):
        request = TranslationPromptBuilder().build_chat_request("Hi", PromptContext(system_message="Translate."))
        assert request.messages[0].content == "Translate."
