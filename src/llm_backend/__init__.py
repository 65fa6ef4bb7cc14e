__version__ = "1.0.0"


def get_version():
    return __version__


from llm_backend.config import BackendConfig, LlmSettings, get_settings
from llm_backend.exceptions import (
    BackendResponseError,
    BackendTransportError,
    ConfigurationError,
    LlmBackendError,
    UnsupportedBackendError,
)
from llm_backend.orchestrator import BackendRouter, LlmService, RetryHandler, StatisticsRegistry
from llm_backend.schemas import (
    BackendHealth,
    BackendStatistics,
    BackendType,
    ChatMessage,
    ChatRequest,
    LlmRequest,
    LlmResponse,
    SelectionStrategy,
)
from llm_backend.translation import TranslationService

__all__ = [
    "__version__",
    "get_version",
    "BackendConfig",
    "LlmSettings",
    "get_settings",
    "BackendResponseError",
    "BackendTransportError",
    "ConfigurationError",
    "LlmBackendError",
    "UnsupportedBackendError",
    "BackendRouter",
    "LlmService",
    "RetryHandler",
    "StatisticsRegistry",
    "BackendHealth",
    "BackendStatistics",
    "BackendType",
    "ChatMessage",
    "ChatRequest",
    "LlmRequest",
    "LlmResponse",
    "SelectionStrategy",
    "TranslationService",
]
