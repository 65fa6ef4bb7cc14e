"""Backend adapters for remote LLM and translation services."""

from .anthropic_backend import AnthropicBackend
from .azure_openai import AzureOpenAIBackend
from .base import BaseBackend
from .easynmt import EasyNMTBackend
from .factory import BackendFactory
from .metrics import BackendMetrics, MetricsSnapshot
from .ollama import OllamaBackend
from .openai_backend import OpenAIBackend

__all__ = [
    "AnthropicBackend",
    "AzureOpenAIBackend",
    "BaseBackend",
    "BackendFactory",
    "BackendMetrics",
    "EasyNMTBackend",
    "MetricsSnapshot",
    "OllamaBackend",
    "OpenAIBackend",
]
