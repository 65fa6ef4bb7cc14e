"""Backend factory mapping configured types to adapter classes."""

import logging
from typing import Dict, Iterable, List, Optional, Type

import httpx

from ..config.settings import BackendConfig, LlmSettings
from ..exceptions import ConfigurationError, UnsupportedBackendError
from ..schemas.llm import BackendType
from .anthropic_backend import AnthropicBackend
from .azure_openai import AzureOpenAIBackend
from .base import BaseBackend
from .easynmt import EasyNMTBackend
from .ollama import OllamaBackend
from .openai_backend import OpenAIBackend

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating backend adapters from configuration."""

    def __init__(
        self,
        settings: Optional[LlmSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize backend factory.

        Args:
            settings: Shared timeout and temperature defaults
            transport: httpx transport handed to every adapter
        """
        self.settings = settings or LlmSettings()
        self.transport = transport
        self.backend_classes: Dict[BackendType, Type[BaseBackend]] = {
            BackendType.OPENAI: OpenAIBackend,
            BackendType.GENERIC: OpenAIBackend,
            BackendType.LMSTUDIO: OpenAIBackend,
            BackendType.AZURE_OPENAI: AzureOpenAIBackend,
            BackendType.OLLAMA: OllamaBackend,
            BackendType.ANTHROPIC: AnthropicBackend,
            BackendType.EASYNMT: EasyNMTBackend,
        }

    def register_backend(self, backend_type: BackendType, backend_class: Type[BaseBackend]) -> None:
        self.backend_classes[backend_type] = backend_class
        logger.info("Registered backend class %s for %s", backend_class.__name__, backend_type.value)

    def create_backend(self, config: BackendConfig) -> BaseBackend:
        """Create one adapter.

        Raises:
            UnsupportedBackendError: If no adapter exists for the config's type
        """
        backend_class = self.backend_classes.get(config.type)
        if backend_class is None:
            raise UnsupportedBackendError(config.type.value, backend=config.name)

        return backend_class(
            config,
            timeout_seconds=self.settings.timeout_seconds,
            default_temperature=self.settings.default_temperature,
            transport=self.transport,
        )

    def create_backends(self, configs: Optional[Iterable[BackendConfig]] = None) -> List[BaseBackend]:
        """Create adapters for every enabled config.

        A config that cannot be built is logged and skipped; the others are
        still created.
        """
        if configs is None:
            configs = self.settings.backends

        backends = []
        for config in configs:
            if not config.enabled:
                logger.info("Skipping disabled backend %s", config.name)
                continue
            try:
                backends.append(self.create_backend(config))
            except ConfigurationError as e:
                logger.error("Failed to create backend %s: %s", config.name, e)
        return backends
