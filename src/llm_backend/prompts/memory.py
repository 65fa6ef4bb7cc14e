"""Conversation memory stores."""

import threading
from abc import ABC, abstractmethod
from typing import List

from ..schemas.llm import ChatMessage

CHARS_PER_TOKEN = 4


class ContextMemory(ABC):
    """Append-only log of conversational turns."""

    @abstractmethod
    def add_message(self, message: ChatMessage) -> None: ...

    @abstractmethod
    def get_recent_messages(self, max_count: int = 10) -> List[ChatMessage]: ...

    @abstractmethod
    def get_all_messages(self) -> List[ChatMessage]: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def estimate_token_count(self) -> int: ...

    @abstractmethod
    def trim_to_token_limit(self, max_tokens: int) -> None: ...

    @abstractmethod
    async def save(self, key: str) -> None: ...

    @abstractmethod
    async def load(self, key: str) -> None: ...


class InMemoryContextMemory(ContextMemory):
    """Process-local memory. ``save``/``load`` do nothing."""

    def __init__(self):
        self._messages: List[ChatMessage] = []
        self._lock = threading.Lock()

    def add_message(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.append(message)

    def get_recent_messages(self, max_count: int = 10) -> List[ChatMessage]:
        if max_count <= 0:
            return []
        with self._lock:
            return list(self._messages[-max_count:])

    def get_all_messages(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def estimate_token_count(self) -> int:
        with self._lock:
            return self._estimate(self._messages)

    def trim_to_token_limit(self, max_tokens: int) -> None:
        """Evict the oldest non-system messages until under ``max_tokens``.

        System messages are kept, and at least one message always remains.
        """
        with self._lock:
            while self._estimate(self._messages) > max_tokens and len(self._messages) > 1:
                index = next(
                    (i for i, m in enumerate(self._messages) if m.role != "system"), None
                )
                if index is None:
                    break
                del self._messages[index]

    async def save(self, key: str) -> None:
        return None

    async def load(self, key: str) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    @staticmethod
    def _estimate(messages: List[ChatMessage]) -> int:
        return sum(len(m.content) // CHARS_PER_TOKEN for m in messages)
