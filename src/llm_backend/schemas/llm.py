"""
Request, response and health models shared by every backend adapter.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(value: str) -> str:
    return value.replace("_", "").replace("-", "").replace(" ", "").casefold()


class _LenientEnum(str, Enum):
    """String enum that matches values case- and separator-insensitively."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = _normalize(value)
            for member in cls:
                if _normalize(member.value) == wanted or _normalize(member.name) == wanted:
                    return member
        return None


class BackendType(_LenientEnum):
    """Kinds of remote service a backend can talk to."""

    OPENAI = "OpenAI"
    AZURE_OPENAI = "AzureOpenAI"
    OLLAMA = "Ollama"
    LMSTUDIO = "LMStudio"
    EASYNMT = "EasyNMT"
    ANTHROPIC = "Anthropic"
    GEMINI = "Gemini"
    COHERE = "Cohere"
    GENERIC = "Generic"


class SelectionStrategy(_LenientEnum):
    """Backend selection strategies."""

    FAILOVER = "Failover"
    ROUND_ROBIN = "RoundRobin"
    LOWEST_LATENCY = "LowestLatency"
    RANDOM = "Random"
    SPECIFIC = "Specific"


class ChatMessage(BaseModel):
    """A single conversational turn."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="Message role (system, user, assistant)")
    content: str = Field(..., description="Message content")

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)


class LlmRequest(BaseModel):
    """Single-shot completion request."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(default="", description="Prompt text")
    system_message: Optional[str] = Field(None, description="System instruction")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, gt=0)
    top_p: Optional[float] = Field(None, ge=0.0, le=1.0)
    frequency_penalty: Optional[float] = Field(None, ge=-2.0, le=2.0)
    presence_penalty: Optional[float] = Field(None, ge=-2.0, le=2.0)
    stop_sequences: Optional[List[str]] = None
    preferred_backend: Optional[str] = Field(
        None, description="Route to this backend only, bypassing the selection strategy"
    )
    timeout_seconds: Optional[float] = Field(None, gt=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChatRequest(LlmRequest):
    """Conversational request carrying the full message sequence."""

    messages: List[ChatMessage] = Field(default_factory=list)

    def last_user_message(self) -> Optional[ChatMessage]:
        for message in reversed(self.messages):
            if message.role == "user":
                return message
        return None


class LlmResponse(BaseModel):
    """Outcome of one backend call or one orchestrated call."""

    content: str = ""
    backend_used: str
    model_used: Optional[str] = None
    success: bool = True
    error_message: Optional[str] = None
    duration_ms: float = 0.0
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    finish_reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def all_failed(cls, duration_ms: float = 0.0) -> "LlmResponse":
        """Synthetic response returned when no candidate produced a result."""
        return cls(
            backend_used="None",
            success=False,
            error_message="All backends failed",
            duration_ms=duration_ms,
        )


class BackendStatistics(BaseModel):
    """Orchestrator-side counters for one backend."""

    backend_name: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_latency_ms: Optional[float] = None
    last_used: Optional[datetime] = None
    is_available: bool = True
    last_error: Optional[str] = None

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


class BackendHealth(BaseModel):
    """Point-in-time health of one backend."""

    backend_name: str
    backend_type: Optional[BackendType] = None
    model_name: Optional[str] = None
    is_healthy: bool
    average_latency_ms: Optional[float] = None
    success_count: int = 0
    failure_count: int = 0
    last_error: Optional[str] = None
    last_successful_request: Optional[datetime] = None
    checked_at: datetime = Field(default_factory=_utcnow)
